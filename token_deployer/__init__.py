from flask import Flask
from flasgger import Swagger
from prometheus_flask_exporter import PrometheusMetrics
from flask_cors import CORS
import os

from .logging_setup import setup_logging
from .routes import token_routes, compile_routes, job_routes, health
from .config import DevelopmentConfig, ProductionConfig, TestingConfig


def create_app(config_name: str = "development"):
    app = Flask(__name__)

    config_map = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }
    app.config.from_object(config_map.get(config_name.lower(), DevelopmentConfig))

    setup_logging(app)

    # CORS desde variable de entorno CORS_ORIGINS
    # - no seteada o '*' -> permite todos los orígenes
    # - "https://app.example.com,https://admin.example.com" -> sólo esos
    cors_origin = os.getenv("CORS_ORIGINS", "*").strip()
    cors_common_kwargs = dict(
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS", "HEAD"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "X-Requested-With",
            "Accept",
            "Origin",
            "Cache-Control",
        ],
    )
    if cors_origin == "*" or cors_origin == "":
        CORS(app, resources={r"/*": {"origins": "*"}}, **cors_common_kwargs)
    else:
        origins_list = [o.strip() for o in cors_origin.split(",") if o.strip()]
        CORS(app, resources={r"/*": {"origins": origins_list}}, **cors_common_kwargs)

    # 👇 Importar models aquí (ya con app creada)
    from .models import init_app as init_models
    init_models(app)

    swagger_template = {
        "swagger": "2.0",
        "info": {
            "title": "Token Deployer API",
            "description": "API para compilar contratos ERC20 y registrar despliegues.",
            "version": "1.0.0",
        },
        "basePath": "/",
        "schemes": ["https", "http"],
    }
    swagger_config = {
        "headers": [],
        "specs": [
            {
                "endpoint": "apispec_1",
                "route": "/apispec_1.json",
                "rule_filter": lambda rule: True,
                "model_filter": lambda tag: True,
            }
        ],
        "static_url_path": "/flasgger_static",
        "swagger_ui": True,
        "specs_route": "/apidocs/",
    }
    Swagger(app, template=swagger_template, config=swagger_config)

    # Blueprints
    app.register_blueprint(token_routes.bp, url_prefix="/api/tokens")
    app.register_blueprint(compile_routes.bp, url_prefix="/api/compile")
    app.register_blueprint(job_routes.bp, url_prefix="/api/jobs")
    app.register_blueprint(health.bp)

    # CLI: flask token ...
    from .cli import token_cli
    app.cli.add_command(token_cli)

    # Métricas
    metrics = PrometheusMetrics(app, path="/metrics")
    metrics.info("app_info", "Token Deployer service", version="1.0.0")

    return app
