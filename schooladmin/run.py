import argparse
import getpass
import sys

from schooladmin.api import create_app, settings
from schooladmin.api.db.store import DocumentStore
from schooladmin.api.errors import ApiError
from schooladmin.api.models import RoleType
from schooladmin.api.routes import create_user
from schooladmin.api.utils.logger import write_log


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password) < 8:
            print("Password must be at least 8 characters long.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def create_admin(args, store=None) -> int:
    store = store or DocumentStore()
    password = args.password or prompt_for_password()
    data = {
        "id": args.id,
        "firstName": args.first_name,
        "lastName": args.last_name,
        "email": args.email,
        "password": password,
        "role": {"type": RoleType.ADMIN.value},
    }
    try:
        # the bootstrap user has no creator
        user = create_user(store, data, created_by=None)
    except ApiError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    write_log({"event": "bootstrap_user_created", "user_id": user["_id"], "id": user["id"]}, stream="admin")
    print(f"Created admin {user['id']} <{user['email']}> ({user['_id']})")
    return 0


def serve(args) -> int:
    app = create_app()
    ssl_context = (args.cert, args.key) if args.cert and args.key else None
    app.run(
        debug=settings.DEBUG,
        host=args.host,
        port=args.port,
        ssl_context=ssl_context
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="School administration GraphQL server")
    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Launch GraphQL server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=5000, help="Port to run the server on")
    serve_parser.add_argument("--cert", default=None, help="TLS certificate (PEM)")
    serve_parser.add_argument("--key", default=None, help="TLS private key (PEM)")
    serve_parser.set_defaults(func=serve)

    admin_parser = sub.add_parser("create-admin", help="Create the bootstrap admin user")
    admin_parser.add_argument("id", help="External identifier of the user")
    admin_parser.add_argument("email", help="Unique email address for login")
    admin_parser.add_argument("first_name", help="First name")
    admin_parser.add_argument("last_name", help="Last name")
    admin_parser.add_argument("--password", default=None, help="Password (prompted when omitted)")
    admin_parser.set_defaults(func=create_admin)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
