"""Runs the metalambda interpreter on a .lc file, or in command-line mode. Also uses error handling context manager.
Called from the metalambda console script.

Python version must be >=3.7, because error handling requires that dicts are insertion-ordered.
"""

import argparse
import sys

from metalambda.lang.error import ErrorHandler
from metalambda.lang.session import Session
from metalambda.lang.shell import Shell


def main():
    """Runs metalambda interpreter. Called from metalambda executable script."""
    assert sys.version_info >= (3, 7), "metalambda cannot be run with python < 3.7"

    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="metalambda")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--trace", help="print every evaluation step", action="store_true")
        parser.add_argument("--max-steps", help="give up after this many beta reductions per expression", type=int)
        parser.add_argument("--no-prelude", help="start without the standard combinators", action="store_true")
        parser.add_argument("--subscripts", help="allow subscripted fresh names (a₁, b₁, ...) once a-z run out",
                            action="store_true")
        args = parser.parse_args()

        error_handler.verbose = args.trace
        options = {"prelude": not args.no_prelude, "max_steps": args.max_steps, "subscripts": args.subscripts}

        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False, **options)
            sess.run()

            for result in sess.results:
                print(result)

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True, **options)).cmdloop()


if __name__ == "__main__":
    main()
