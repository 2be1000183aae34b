"""
IVC 스터디 앱
==============

폴딩 IVC 의 setup / 스텝 증명 / 체인 검증을 HTTP 로 실행해 볼 수 있는 Flask 앱.
체인과 공개 파라미터는 TinyDB 에 저장된다.

설정 (app.config, IVC_ 접두사 환경 변수로 덮어쓸 수 있음):

  | 키              | 기본값        | 의미                                  |
  |-----------------|---------------|---------------------------------------|
  | SECRET_KEY      | "key"         | Flask 세션 키                         |
  | DB_PATH         | "db.json"     | TinyDB 파일 (None 이면 메모리)        |
  | SETUP_SEED      | "ivc-setup"   | 커밋먼트 키 생성 시드                 |
  | FULL_ROUNDS     | 8             | Poseidon full 라운드 수               |
  | PARTIAL_ROUNDS  | 56            | Poseidon partial 라운드 수            |
  | PRIMARY_SCHEME  | "kzg"         | primary 커밋먼트 스킴                 |
  | CHALLENGE_BITS  | 128           | 폴딩 챌린지 비트 수 (1..128)          |
  | LOG_LEVEL       | "INFO"        | 로그 레벨                             |
  | LOG_FILE        | None          | 로그 파일 (None 이면 콘솔만)          |

실행:
    flask --app app run
"""

import logging
from logging.handlers import RotatingFileHandler

from flask import Flask
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from ivc_routes import ivc_bp, init_ivc_bp

DEFAULT_CONFIG = {
    "SECRET_KEY": "key",
    "DB_PATH": "db.json",
    "SETUP_SEED": "ivc-setup",
    "FULL_ROUNDS": 8,
    "PARTIAL_ROUNDS": 56,
    "PRIMARY_SCHEME": "kzg",
    "CHALLENGE_BITS": 128,
    "LOG_LEVEL": "INFO",
    "LOG_FILE": None,
}

_LOG_INITIALIZED = False


def init_logging(level="INFO", log_file=None, max_bytes=10 * 1024 * 1024, backup_count=5):
    """ivc 로거에 콘솔(및 파일) 핸들러를 설정한다. 두 번째 호출부터는 레벨만 바꾼다."""
    global _LOG_INITIALIZED
    logger = logging.getLogger("ivc")
    log_level = logging.getLevelName(str(level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger.setLevel(log_level)
    if _LOG_INITIALIZED:
        return

    fmt = logging.Formatter(fmt="%(asctime)s %(levelname)-7s %(name)s %(message)s",
                            datefmt="%H:%M:%S")
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)
    if log_file:
        fh = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count,
                                 encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    _LOG_INITIALIZED = True


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    if test_config is None:
        app.config.from_prefixed_env("IVC")
    else:
        app.config.from_mapping(test_config)

    init_logging(app.config["LOG_LEVEL"], app.config["LOG_FILE"])

    if app.config["DB_PATH"]:
        db = TinyDB(app.config["DB_PATH"])
    else:
        db = TinyDB(storage=MemoryStorage)
    app.extensions["tinydb"] = db

    init_ivc_bp(db)
    app.register_blueprint(ivc_bp)

    @app.route("/")
    def index():
        return {"ok": True, "endpoints": sorted(
            str(rule) for rule in app.url_map.iter_rules() if str(rule).startswith("/ivc")
        )}

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
