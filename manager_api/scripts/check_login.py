"""
Check a username/password against the configured legacy table. Run from project root:
  python -m manager_api.scripts.check_login USERNAME PASSWORD [--debug]
Example:
  python -m manager_api.scripts.check_login jdoe 'secret' --debug

--debug logs lookup misses and SHA-256 candidate digests; use it only on a trusted console.
"""
import argparse
import logging
import sys

from manager_api.core.config import get_settings
from manager_api.core.database import build_engine
from manager_api.core.errors import InternalAuthError, UnauthorizedError
from manager_api.services.local_auth import login

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify a local login against Oracle.")
    parser.add_argument("username", help="Value of the username column")
    parser.add_argument("password", help="Password to verify")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log lookup misses and SHA-256 candidates for this run",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.debug:
        settings = settings.model_copy(update={"ORACLE_AUTH_DEBUG": True})

    engine = build_engine(settings)
    try:
        result = login(args.username, args.password, settings, engine)
    except UnauthorizedError as e:
        print(e.message, file=sys.stderr)
        return 1
    except InternalAuthError as e:
        logger.error("Login check failed: %s", e.message)
        return 2
    finally:
        engine.dispose()

    print(f"Login OK (algorithm={settings.password_algorithm}): {result.user.model_dump_json()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
