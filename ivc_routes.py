"""
IVC Flask Blueprint — 폴딩 IVC 엔드포인트
==========================================

  | 메서드 | 경로                        | 동작                         |
  |--------|-----------------------------|------------------------------|
  | GET    | /ivc/circuits               | 사용 가능한 step 회로 목록   |
  | POST   | /ivc/setup                  | 공개 파라미터 생성           |
  | POST   | /ivc/chains                 | 체인(누적기) 생성            |
  | GET    | /ivc/chains/<id>            | 체인 상태 조회               |
  | POST   | /ivc/chains/<id>/prove      | 스텝 증명 (steps, aux)       |
  | POST   | /ivc/chains/<id>/verify     | 체인 검증 (steps)            |

모든 응답은 JSON 이다. IVCError 는 {"ok": false, "error", "message", "step"} 로 변환되며,
검증 거부(VerifyError)는 422, 그 밖의 요청 오류는 400 이다.
"""

import logging
import uuid

from flask import Blueprint, current_app, jsonify, request
from tinydb import Query

from ivc.errors import IVCError, VerifyError
from ivc.proof import IVCProof
from ivc.public_params import setup
from ivc.step_circuit import CIRCUITS
from ivc.transcript import poseidon_config

from ivc_serializers import (
    serialize_proof, deserialize_proof,
    serialize_public_params, deserialize_public_params,
    serialize_fr_list,
    fr_short, point_short,
)

logger = logging.getLogger(__name__)

ivc_bp = Blueprint('ivc', __name__, url_prefix='/ivc')

DATA = Query()

# DB는 app.py에서 주입
DB = None

# setup_id → PublicParameters (역직렬화 캐시)
_PP_CACHE = {}


def init_ivc_bp(db):
    """app.py에서 DB를 주입받는다."""
    global DB
    DB = db
    _PP_CACHE.clear()


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


# ─── 오류 응답 ───

class BadRequest(Exception):
    def __init__(self, message, status=400):
        super().__init__(message)
        self.message = message
        self.status = status


@ivc_bp.errorhandler(BadRequest)
def handle_bad_request(exc):
    return jsonify({"ok": False, "error": "BadRequest", "message": exc.message}), exc.status


@ivc_bp.errorhandler(IVCError)
def handle_ivc_error(exc):
    status = 422 if isinstance(exc, VerifyError) else 400
    return jsonify({
        "ok": False,
        "error": type(exc).__name__,
        "message": exc.message,
        "step": exc.step,
        "retryable": exc.retryable,
    }), status


def _json_body():
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise BadRequest("request body must be a JSON object")
    return body


def _make_circuit(name, options):
    if name not in CIRCUITS:
        raise BadRequest(f"unknown step circuit {name!r}")
    try:
        return CIRCUITS[name](**(options or {}))
    except TypeError as exc:
        raise BadRequest(f"invalid options for {name}: {exc}") from exc


def _load_setup(setup_id):
    record = db_get(f"ivc.setup.{setup_id}")
    if record is None:
        raise BadRequest(f"unknown setup {setup_id!r}", status=404)
    pp = _PP_CACHE.get(setup_id)
    if pp is None:
        pp = deserialize_public_params(record["pp"])
        _PP_CACHE[setup_id] = pp
    return record, pp


def _load_chain(chain_id):
    chain = db_get(f"ivc.chain.{chain_id}")
    if chain is None:
        raise BadRequest(f"unknown chain {chain_id!r}", status=404)
    return chain


def _chain_summary(chain_id, chain, proof):
    return {
        "ok": True,
        "chain_id": chain_id,
        "setup_id": chain["setup_id"],
        "steps": proof.i,
        "z0": serialize_fr_list(proof.z0),
        "zi": serialize_fr_list(proof.zi),
        "running_u": None if proof.U is None else fr_short(proof.U.u),
        "running_comm_W": None if proof.U is None else point_short(proof.U.comm_W),
        "running_comm_E": None if proof.U is None else point_short(proof.U.comm_E),
        "cyclefold_u": None if proof.U_sec is None else fr_short(proof.U_sec.u),
        "cyclefold_comm_W": None if proof.U_sec is None else point_short(proof.U_sec.comm_W),
    }


# ──────────────────────────────────────────────────────────────
# 회로 / setup
# ──────────────────────────────────────────────────────────────

@ivc_bp.route("/circuits")
def list_circuits():
    """사용 가능한 step 회로 목록."""
    circuits = []
    for name, cls in sorted(CIRCUITS.items()):
        circuits.append({"name": name, "doc": (cls.__doc__ or "").strip().splitlines()[0]})
    return jsonify({"ok": True, "circuits": circuits})


@ivc_bp.route("/setup", methods=["POST"])
def run_setup():
    """공개 파라미터를 생성하고 저장한다.

    body: {"circuit": "cubic", "options": {...}, "scheme": "kzg" | "pedersen"}
    """
    body = _json_body()
    name = body.get("circuit", "cubic")
    options = body.get("options") or {}
    circuit = _make_circuit(name, options)

    cfg = current_app.config
    config = poseidon_config(full_rounds=cfg["FULL_ROUNDS"], partial_rounds=cfg["PARTIAL_ROUNDS"])
    pp = setup(
        config,
        circuit,
        primary_scheme=body.get("scheme", cfg["PRIMARY_SCHEME"]),
        seed=cfg["SETUP_SEED"],
        challenge_bits=cfg["CHALLENGE_BITS"],
    )

    setup_id = str(int(pp.digest))
    db_set(f"ivc.setup.{setup_id}", {
        "circuit": name,
        "options": options,
        "pp": serialize_public_params(pp),
    })
    _PP_CACHE[setup_id] = pp
    logger.info("setup %s: %s, %d constraints", fr_short(pp.digest), name, pp.num_constraints)

    return jsonify({
        "ok": True,
        "setup_id": setup_id,
        "circuit": name,
        "num_constraints": pp.num_constraints,
        "num_vars": pp.num_vars,
        "cyclefold_constraints": pp.secondary_shape.num_constraints,
        "challenge_bits": pp.challenge_bits,
        "primary_key": f"{pp.ck_primary.scheme}/{pp.ck_primary.curve.name}",
        "secondary_key": f"{pp.ck_secondary.scheme}/{pp.ck_secondary.curve.name}",
    })


# ──────────────────────────────────────────────────────────────
# 체인
# ──────────────────────────────────────────────────────────────

@ivc_bp.route("/chains", methods=["POST"])
def create_chain():
    """body: {"setup_id": ..., "z0": [int, ...]}"""
    body = _json_body()
    setup_id = str(body.get("setup_id"))
    _, pp = _load_setup(setup_id)
    z0 = body.get("z0")
    if not isinstance(z0, list) or len(z0) != pp.arity:
        raise BadRequest(f"z0 must be a list of {pp.arity} integers")
    try:
        proof = IVCProof.new([int(v) for v in z0])
    except (TypeError, ValueError) as exc:
        raise BadRequest(f"invalid z0: {exc}") from exc

    chain_id = uuid.uuid4().hex
    chain = {"setup_id": setup_id, "proof": serialize_proof(proof)}
    db_set(f"ivc.chain.{chain_id}", chain)
    return jsonify(_chain_summary(chain_id, chain, proof)), 201


@ivc_bp.route("/chains/<chain_id>")
def get_chain(chain_id):
    chain = _load_chain(chain_id)
    return jsonify(_chain_summary(chain_id, chain, deserialize_proof(chain["proof"])))


@ivc_bp.route("/chains/<chain_id>/prove", methods=["POST"])
def prove_chain(chain_id):
    """body: {"steps": 1, "aux": int | null}

    모든 스텝이 성공한 뒤에 한 번만 저장한다. 중간 스텝이 실패하면 저장된 누적기는 바뀌지 않는다.
    """
    body = _json_body()
    steps = body.get("steps", 1)
    if isinstance(steps, bool) or not isinstance(steps, int) or steps < 1:
        raise BadRequest("steps must be a positive integer")
    aux = body.get("aux")
    if aux is not None and (isinstance(aux, bool) or not isinstance(aux, int)):
        raise BadRequest("aux must be an integer or null")

    chain = _load_chain(chain_id)
    record, pp = _load_setup(chain["setup_id"])
    circuit = _make_circuit(record["circuit"], record["options"])

    proof = deserialize_proof(chain["proof"])
    for _ in range(steps):
        proof = proof.prove_step(pp, circuit, aux)
    chain = {"setup_id": chain["setup_id"], "proof": serialize_proof(proof)}
    db_set(f"ivc.chain.{chain_id}", chain)
    return jsonify(_chain_summary(chain_id, chain, proof))


@ivc_bp.route("/chains/<chain_id>/verify", methods=["POST"])
def verify_chain(chain_id):
    """body: {"steps": int} (생략하면 누적기의 스텝 수)"""
    body = _json_body()
    chain = _load_chain(chain_id)
    _, pp = _load_setup(chain["setup_id"])
    proof = deserialize_proof(chain["proof"])

    steps = body.get("steps", proof.i)
    if isinstance(steps, bool) or not isinstance(steps, int):
        raise BadRequest("steps must be an integer")
    proof.verify_steps(pp, steps)
    return jsonify({"ok": True, "chain_id": chain_id, "steps": steps})
