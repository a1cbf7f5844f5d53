import sys
from pathlib import Path

import fncli

from . import db
from .core.errors import CadenceError
from .lib.log import setup_logging


def main():
    setup_logging()
    try:
        db.init()
    except CadenceError as e:
        sys.stderr.write(f"{e}\n")
        sys.exit(1)
    fncli.autodiscover(Path(__file__).parent, "cadence")

    user_args = sys.argv[1:]
    try:
        if not user_args:
            from .dash import today

            today()
            return
        code = fncli.dispatch(["cadence", *user_args])
    except CadenceError as e:
        sys.stderr.write(f"{e}\n")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
