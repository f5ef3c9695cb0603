import logging
import uuid

from flask import Flask, g, request
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect

from app.crm import models as _models  # noqa: F401  (registers every table on Base.metadata)
from app.crm.config import load_config
from app.crm.db import init_db, teardown_db_session
from app.crm.errors import register_error_handlers
from app.crm.routes import bp as routes_bp
from app.crm.modules.customers.api import bp as customers_bp
from app.crm.modules.invoice_types.api import bp as invoice_types_bp
from app.crm.modules.notes.api import bp as notes_bp
from app.crm.modules.shipping_instructions.api import bp as shipping_instructions_bp
from app.crm.modules.zip_data.api import bp as zip_data_bp

# table -> columns the code relies on
_EXPECTED_SCHEMA = {
    "customers": ("notes", "invoice_type_id"),
    "invoice_types": ("name",),
    "notes": ("customer_id", "rank", "content"),
    "shipping_instruction_print_history": ("delivery_date", "printed_at", "package_count"),
    "zip_codes": ("zip_code",),
}


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False  # type: ignore[attr-defined]

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(customers_bp, url_prefix="/customers")
    app.register_blueprint(invoice_types_bp, url_prefix="/invoice-types")
    app.register_blueprint(notes_bp, url_prefix="/notes")
    app.register_blueprint(shipping_instructions_bp, url_prefix="/shipping-instruction-printouts")
    app.register_blueprint(zip_data_bp, url_prefix="/zip-data")

    register_error_handlers(app)
    app.teardown_appcontext(teardown_db_session)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def _echo_request_id(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers["X-Request-ID"] = rid
        return response

    # Migration health (lean): detect drift between code expectations and DB schema.
    # Checked on the first request so tooling that creates tables after create_app() is not flagged.
    app.config.setdefault("_schema_health_ok", None)
    app.config.setdefault("_schema_health_missing", [])

    def _run_schema_health_check() -> None:
        missing: list[str] = []
        try:
            engine = app.extensions.get("sqlalchemy_engine")
            if engine is None:
                raise RuntimeError("sqlalchemy_engine not initialized")
            insp = sa_inspect(engine)
            for table, columns in _EXPECTED_SCHEMA.items():
                if not insp.has_table(table):
                    missing.append(f"{table} (table)")
                    continue
                cols = {c["name"] for c in insp.get_columns(table)}
                missing.extend(f"{table}.{col}" for col in columns if col not in cols)
        except Exception as e:
            app.logger.exception("Schema health check failed: %s", e)

        if missing:
            app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))
        app.config["_schema_health_missing"] = missing
        app.config["_schema_health_ok"] = not missing

    @app.before_request
    def _schema_health_guardrail():  # type: ignore[no-redef]
        if request.path in ("/", "/health", "/healthz"):
            return None
        if app.config.get("_schema_health_ok") is None:
            _run_schema_health_check()
        if app.config.get("_schema_health_ok"):
            return None
        return {
            "message": "Database schema is out of date.",
            "missing": app.config.get("_schema_health_missing") or [],
        }, 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
