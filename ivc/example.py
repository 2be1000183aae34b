"""
IVC E2E 데모: x → x³ + x + 5 를 반복 적용
==========================================

이 스크립트는 폴딩 기반 IVC 의 전체 흐름을 시연한다.

실행:
    python -m ivc.example

흐름:
    1. 공개 파라미터 생성 (setup)
    2. 누적기 생성 (z0 = [3])
    3. 스텝 증명 (prove_step × 3)
    4. 체인 검증 (verify_steps)
    5. 잘못된 스텝 수 / 조작된 누적기로 검증 (실패해야 함)
"""

import dataclasses

from ivc.errors import VerifyError
from ivc.field import FR
from ivc.proof import IVCProof
from ivc.public_params import setup
from ivc.step_circuit import CubicCircuit
from ivc.transcript import poseidon_config

NUM_STEPS = 3
# 데모 속도를 위해 줄인 챌린지 비트 수 (기본값은 128)
CHALLENGE_BITS = 32


def main():
    print("=" * 60)
    print("  Folding IVC Demo")
    print("  step 함수: x → x³ + x + 5,  z0 = [3]")
    print("=" * 60)

    # ── 1. setup ──
    print("\n[1] 공개 파라미터 생성...")
    circuit = CubicCircuit()
    pp = setup(poseidon_config(full_rounds=8, partial_rounds=8), circuit, seed="demo",
               challenge_bits=CHALLENGE_BITS)
    print(f"    제약 수: {pp.num_constraints} (CycleFold 회로: {pp.secondary_shape.num_constraints})")
    print(f"    witness 변수 수: {pp.num_vars}")
    print(f"    커밋먼트 키: {pp.ck_primary.scheme}/{pp.ck_primary.curve.name} "
          f"(size {pp.ck_primary.size}), "
          f"{pp.ck_secondary.scheme}/{pp.ck_secondary.curve.name} "
          f"(size {pp.ck_secondary.size})")
    print(f"    다이제스트: {int(pp.digest)}")

    # ── 2. 누적기 ──
    print("\n[2] 누적기 생성...")
    proof = IVCProof.new([FR(3)])
    print(f"    z0 = {[int(v) for v in proof.z0]}")

    # ── 3. 스텝 증명 ──
    print(f"\n[3] 스텝 증명 ({NUM_STEPS}회)...")
    for _ in range(NUM_STEPS):
        proof = proof.prove_step(pp, circuit)
        print(f"    i = {proof.i}: z = {int(proof.zi[0])}, U.u = {int(proof.U.u)}, "
              f"U_sec.u = {int(proof.U_sec.u)}")

    # ── 4. 검증 ──
    print("\n[4] 체인 검증...")
    proof.verify_steps(pp, NUM_STEPS)
    print(f"    {NUM_STEPS} 스텝 검증 성공 ✓")

    # ── 5. 실패해야 하는 검증 ──
    print("\n[5] 잘못된 주장 검증...")
    ok = True
    try:
        proof.verify_steps(pp, NUM_STEPS - 1)
        ok = False
    except VerifyError as exc:
        print(f"    스텝 수 {NUM_STEPS - 1}: {type(exc).__name__} (예상대로 실패)")

    fake = dataclasses.replace(proof, zi=(proof.zi[0] + FR(1),))
    try:
        fake.verify_steps(pp, NUM_STEPS)
        ok = False
    except VerifyError as exc:
        print(f"    상태 변조: {type(exc).__name__} (예상대로 실패)")

    print("\n" + "=" * 60)
    if ok:
        print("  데모 완료: 모든 검사 통과!")
    else:
        print("  데모 완료: 일부 검사 실패")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    main()
