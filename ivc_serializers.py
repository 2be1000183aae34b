"""
IVC 데이터 직렬화/역직렬화 헬퍼
================================

TinyDB에 저장 가능한 형태로 IVC 객체를 변환한다.
FR/FQ, 곡선 점, R1CS 형태/인스턴스/witness, 커밋먼트 키, PoseidonConfig,
PublicParameters, IVCProof 등.

정수는 모두 10진수 문자열로 저장한다. dumps_* 함수는 키를 정렬하고
구분자를 고정한 JSON 바이트를 만들므로, 같은 값은 항상 같은 바이트가 된다.
"""

import json

from ivc.commitment import CommitmentKey
from ivc.curves import BN254, CURVES, GRUMPKIN, CurveCycle
from ivc.field import FQ, FR
from ivc.proof import IVCProof
from ivc.public_params import PublicParameters, compute_digest
from ivc.r1cs import (
    R1CSInstance,
    R1CSShape,
    R1CSWitness,
    RelaxedR1CSInstance,
    RelaxedR1CSWitness,
)
from ivc.transcript import PoseidonConfig


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) → FR"""
    return FR(int(s))


def serialize_fr_list(vals):
    return [serialize_fr(v) for v in vals]


def deserialize_fr_list(data, field=FR):
    return tuple(field(int(s)) for s in data)


# 형태/인스턴스가 속한 체의 이름
FIELDS = {"fr": FR, "fq": FQ}


def field_name(field):
    return next(name for name, f in FIELDS.items() if f is field)


# ─── 곡선 점 ───

def serialize_point(point):
    """아핀 점 → [str, str] or None"""
    if point is None:
        return None
    return [str(int(point[0])), str(int(point[1]))]


def deserialize_point(data, curve=BN254):
    """[str, str] or None → 아핀 점 (곡선 위에 있지 않으면 ValueError)"""
    if data is None:
        return None
    return curve.point(int(data[0]), int(data[1]))


# ─── R1CS ───

def serialize_shape(shape):
    def matrix(M):
        return [[[col, serialize_fr(coeff)] for col, coeff in row] for row in M]

    return {
        "num_constraints": shape.num_constraints,
        "num_io": shape.num_io,
        "num_vars": shape.num_vars,
        "field": field_name(shape.field),
        "A": matrix(shape.A),
        "B": matrix(shape.B),
        "C": matrix(shape.C),
    }


def deserialize_shape(data):
    field = FIELDS[data.get("field", "fr")]

    def matrix(M):
        return tuple(tuple((int(col), field(int(coeff))) for col, coeff in row) for row in M)

    return R1CSShape(
        num_constraints=data["num_constraints"],
        num_io=data["num_io"],
        num_vars=data["num_vars"],
        A=matrix(data["A"]),
        B=matrix(data["B"]),
        C=matrix(data["C"]),
        field=field,
    )


def serialize_instance(U):
    if U is None:
        return None
    return {"comm_W": serialize_point(U.comm_W), "x": serialize_fr_list(U.x)}


def deserialize_instance(data, curve=BN254):
    if data is None:
        return None
    return R1CSInstance(deserialize_point(data["comm_W"], curve), deserialize_fr_list(data["x"]))


def serialize_witness(w):
    if w is None:
        return None
    return {"W": serialize_fr_list(w.W)}


def deserialize_witness(data):
    if data is None:
        return None
    return R1CSWitness(deserialize_fr_list(data["W"]))


def serialize_relaxed_instance(U):
    if U is None:
        return None
    return {
        "comm_W": serialize_point(U.comm_W),
        "comm_E": serialize_point(U.comm_E),
        "u": serialize_fr(U.u),
        "x": serialize_fr_list(U.x),
    }


def deserialize_relaxed_instance(data, curve=BN254, field=FR):
    if data is None:
        return None
    return RelaxedR1CSInstance(
        comm_W=deserialize_point(data["comm_W"], curve),
        comm_E=deserialize_point(data["comm_E"], curve),
        u=field(int(data["u"])),
        x=deserialize_fr_list(data["x"], field),
    )


def serialize_relaxed_witness(W):
    if W is None:
        return None
    return {"W": serialize_fr_list(W.W), "E": serialize_fr_list(W.E)}


def deserialize_relaxed_witness(data, field=FR):
    if data is None:
        return None
    return RelaxedR1CSWitness(deserialize_fr_list(data["W"], field),
                              deserialize_fr_list(data["E"], field))


# ─── 커밋먼트 키 / 트랜스크립트 설정 ───

def serialize_commitment_key(ck):
    return {
        "scheme": ck.scheme,
        "curve": ck.curve.name,
        "label": ck.label,
        "generators": [serialize_point(g) for g in ck.generators],
    }


def deserialize_commitment_key(data):
    curve = CURVES[data["curve"]]
    return CommitmentKey(
        scheme=data["scheme"],
        curve=curve,
        label=data["label"],
        generators=tuple(deserialize_point(g, curve) for g in data["generators"]),
    )


def serialize_transcript_config(config):
    return {
        "width": config.width,
        "full_rounds": config.full_rounds,
        "partial_rounds": config.partial_rounds,
        "alpha": config.alpha,
        "seed": config.seed,
    }


def deserialize_transcript_config(data):
    return PoseidonConfig(
        width=data["width"],
        full_rounds=data["full_rounds"],
        partial_rounds=data["partial_rounds"],
        alpha=data["alpha"],
        seed=data["seed"],
    )


# ─── PublicParameters ───

def serialize_public_params(pp):
    return {
        "transcript_config": serialize_transcript_config(pp.transcript_config),
        "cycle": [pp.cycle.primary.name, pp.cycle.secondary.name],
        "shape": serialize_shape(pp.shape),
        "secondary_shape": serialize_shape(pp.secondary_shape),
        "ck_primary": serialize_commitment_key(pp.ck_primary),
        "ck_secondary": serialize_commitment_key(pp.ck_secondary),
        "arity": pp.arity,
        "max_steps": str(pp.max_steps),
        "challenge_bits": pp.challenge_bits,
        "digest": serialize_fr(pp.digest),
    }


def deserialize_public_params(data):
    """PublicParameters 복원. 저장된 다이제스트가 내용과 다르면 ValueError."""
    config = deserialize_transcript_config(data["transcript_config"])
    primary, secondary = data["cycle"]
    cycle = CurveCycle(CURVES[primary], CURVES[secondary])
    shape = deserialize_shape(data["shape"])
    secondary_shape = deserialize_shape(data["secondary_shape"])
    ck_primary = deserialize_commitment_key(data["ck_primary"])
    ck_secondary = deserialize_commitment_key(data["ck_secondary"])
    arity = data["arity"]
    max_steps = int(data["max_steps"])
    challenge_bits = data["challenge_bits"]
    digest = deserialize_fr(data["digest"])
    expected = compute_digest(config, cycle, shape, secondary_shape, ck_primary, ck_secondary,
                              arity, max_steps, challenge_bits)
    if digest != expected:
        raise ValueError("public parameter digest does not match its contents")
    return PublicParameters(
        transcript_config=config,
        cycle=cycle,
        shape=shape,
        secondary_shape=secondary_shape,
        ck_primary=ck_primary,
        ck_secondary=ck_secondary,
        arity=arity,
        max_steps=max_steps,
        challenge_bits=challenge_bits,
        digest=digest,
    )


# ─── IVCProof ───

def serialize_proof(proof):
    return {
        "z0": serialize_fr_list(proof.z0),
        "zi": serialize_fr_list(proof.zi),
        "i": str(proof.i),
        "U": serialize_relaxed_instance(proof.U),
        "W": serialize_relaxed_witness(proof.W),
        "u": serialize_instance(proof.u),
        "w": serialize_witness(proof.w),
        "U_sec": serialize_relaxed_instance(proof.U_sec),
        "W_sec": serialize_relaxed_witness(proof.W_sec),
    }


def deserialize_proof(data, curve=BN254, secondary=GRUMPKIN):
    return IVCProof(
        z0=deserialize_fr_list(data["z0"]),
        zi=deserialize_fr_list(data["zi"]),
        i=int(data["i"]),
        U=deserialize_relaxed_instance(data["U"], curve),
        W=deserialize_relaxed_witness(data["W"]),
        u=deserialize_instance(data["u"], curve),
        w=deserialize_witness(data["w"]),
        U_sec=deserialize_relaxed_instance(data.get("U_sec"), secondary, FQ),
        W_sec=deserialize_relaxed_witness(data.get("W_sec"), FQ),
    )


# ─── 바이트 표현 ───

def dumps(data):
    """정규화된 JSON 바이트 (키 정렬, 고정 구분자)."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()


def loads(raw):
    return json.loads(raw)


def dumps_proof(proof):
    return dumps(serialize_proof(proof))


def loads_proof(raw, curve=BN254):
    return deserialize_proof(loads(raw), curve)


def dumps_public_params(pp):
    return dumps(serialize_public_params(pp))


def loads_public_params(raw):
    return deserialize_public_params(loads(raw))


# ─── 화면 표시용 ───

def fr_short(val, n=8):
    """FR 값을 짧은 문자열로 (앞 n자리...)."""
    s = str(int(val))
    if len(s) <= n * 2:
        return s
    return f"{s[:n]}...{s[-4:]}"


def point_short(point):
    if point is None:
        return "O"
    return f"({fr_short(point[0])}, {fr_short(point[1])})"
