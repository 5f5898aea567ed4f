from flask import Flask, current_app, request, jsonify
from flask_cors import CORS
from ariadne import make_executable_schema, graphql_sync
from ariadne.explorer import ExplorerGraphiQL
from .schema import type_defs
from .routes import query, mutation, section_type, object_scalar, null_scalar
from .auth.session import CookieJar
from .errors import format_error
from . import settings

schema = make_executable_schema(type_defs, [query, mutation, section_type, object_scalar, null_scalar])


def _get_store():
    store = current_app.config.get("STORE")
    if store is None:
        from .db.store import DocumentStore
        store = DocumentStore()
        current_app.config["STORE"] = store
    return store


def create_app(store=None, debug=None):
    app = Flask(__name__)
    app.config["STORE"] = store
    app.config["GRAPHQL_DEBUG"] = settings.DEBUG if debug is None else debug
    CORS(app, origins=settings.CORS_ORIGINS, supports_credentials=True)

    @app.route("/graphql", methods=["GET"])
    def graphql_playground():
        return ExplorerGraphiQL().html(None), 200

    @app.route("/graphql", methods=["POST"])
    def graphql_server():
        data = request.get_json(silent=True)
        cookies = CookieJar(request.cookies)
        context = {"request": request, "store": _get_store(), "cookies": cookies}

        success, result = graphql_sync(
            schema,
            data,
            context_value=context,
            error_formatter=format_error,
            debug=current_app.config["GRAPHQL_DEBUG"],
        )
        status_code = 200 if success else 400
        return cookies.apply(jsonify(result)), status_code

    return app
