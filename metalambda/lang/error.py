"""Error handling for the metalambda language. Only GenericExceptions should be encountered during running: if another
type of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

ErrorHandler also doubles as the interpreter's only output channel for warnings and evaluation traces.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a metalambda error/warning."""

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False):
        """Parses args for GenericException or warning."""
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]
        exprs = [str(expr) for expr in exprs]

        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]  # exprs[0] should be the offending expr that caused the error
        self.end = end if end != -1 else len(self.expr)  # needed for error display

        self.start = start
        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(msg.format(*exprs))


class LexicalError(GenericException):
    """Raised by the lexer on a character that cannot start any token."""


class ParseError(GenericException):
    """Raised by the parser when a token sequence is not valid metalambda grammar."""


class UnboundMetavariable(GenericException):
    """A metavariable reference that has no binding in the current environment."""

    def __init__(self, name, location=None):
        super().__init__("unbound metavariable '{}'", name)
        self.name = name
        self.location = location

    def locate(self, source):
        """Points the diagnosis at the reference inside source, the line the reference was parsed from."""
        self.expr = source
        if self.location is not None:
            self.start = self.location.col - 1
        else:
            self.start = max(source.find(self.name), 0)
        self.end = self.start + len(self.name)
        return self


class InvariantViolation(GenericException):
    """The evaluator reached a state the pipeline ordering rules out. Always a bug, never bad user input."""

    def __init__(self, msg, exprs=None):
        super().__init__(msg, exprs, diagnosis=False, internal=True)


class ReductionLimitExceeded(GenericException):
    """Raised when an evaluator with a step budget performs more beta-reductions than allowed."""

    def __init__(self, max_steps):
        super().__init__("no beta-normal form found within {} reduction steps", str(max_steps), diagnosis=False)
        self.max_steps = max_steps


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom metalambda errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"
    STEP = "cyan"

    def __init__(self, fatal=True, verbose=False):
        self.fatal = fatal
        self.verbose = verbose  # whether or not evaluation steps are printed
        self.traceback = {}

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_line(self, path, line, line_num):
        """Registers line in traceback given path. Should be called prior to Session add/run."""
        self.traceback[path] = (line, line_num)

    def remove_line(self, path):
        """Removes line from traceback given path. Should be called after successful Session add/run."""
        self.traceback[path] = (None, None)

    def register_step(self, kind, expr):
        """Prints an evaluation step if verbose. kind is a one-character tag, ex: 'δ' for expansion, 'β' for a
        beta-reduction.
        """
        if self.verbose:
            print(colored(f"  {kind} ", ErrorHandler.STEP, attrs=["bold"]) + str(expr))

    @staticmethod
    def diagnose(error, warning=False):
        """Returns offending part of error.expr highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        diagnosis = "  " + error.expr[:error.start]

        end = max(error.end, error.start + 1)
        diagnosis += colored(error.expr[error.start:end], color, attrs=["bold"])
        diagnosis += error.expr[end:] + "\n"

        diagnosis += "  " + " " * error.start
        diagnosis += colored("^" + "~" * (end - error.start - 1), color, attrs=["bold"])

        return diagnosis

    def _location(self):
        """Returns (file, line, line_num) of the most recently registered line, or None."""
        for file, (line, line_num) in reversed(list(self.traceback.items())):
            if line is not None:
                return file, line, line_num
        return None

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args."""
        error = GenericException(*args, **kwargs)

        location = self._location()
        if location is not None:
            file, line, line_num = location
            col = max(line.find(error.expr), 0) + error.start + 1
            error_msg = colored(f"{file}:{line_num}:{col}: ", attrs=["bold"])
        else:
            error_msg = ""
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg

        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error, warning=True))

    def throw(self, error):
        """Throws error using error and self.traceback. error must be a GenericException, and self.traceback must be a
        dict of file: (line, line_num) representing origination of error.
        """
        error_msg = ""
        location = self._location()
        if location is not None:
            file, __, line_num = location
            error_msg = colored(f"{file}:{line_num}:{error.start + 1}: ", attrs=["bold"])

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error))

        if self.fatal:
            sys.exit(1)
        self.traceback = {path: (None, None) for path in self.traceback}  # if error occurred, reset traceback

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is None:
            return True
        elif issubclass(exc_type, KeyboardInterrupt):
            self.throw(GenericException("keyboard interrupt", diagnosis=False))
        elif issubclass(exc_type, SystemExit):
            do_exit = True
        elif issubclass(exc_type, RecursionError):
            self.throw(GenericException("beta normal form might exist, but maximum recursion depth exceeded"))
        elif issubclass(exc_type, InvariantViolation):
            self.throw(exc_val)
            sys.exit(1)  # pipeline-ordering bug: never absorbed, even by a non-fatal handler
        elif issubclass(exc_type, GenericException):
            self.throw(exc_val)
        else:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            sys.exit(1)

        return not do_exit
