"""Session control for the metalambda language. Feeds source lines (from a file or the command line) through the
parser and an Evaluator, either in command line mode or file interpretation mode.
"""

from metalambda.lang.error import GenericException, UnboundMetavariable
from metalambda.lang.evaluator import Evaluator
from metalambda.lang.lexical import parse
from metalambda.pure.terms import Binding


class Session:
    """Governs a metalambda session, with control over the scope of bound names."""
    SH_FILE = "<in>"  # command-line interpreter filename
    COMMENT = ";;"

    def __init__(self, error_handler, path, cmd_line, prelude=True, max_steps=None, subscripts=False):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.evaluator = Evaluator(prelude=prelude, max_steps=max_steps, subscripts=subscripts)
        self.to_exec = {}  # dict of line num: (source, Expression) to evaluate
        self.results = []  # normal forms, in the order they were computed

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            exprs = []
            add_to_prev = False

            try:
                with open(path, "r") as file:
                    for line_num, line in enumerate(file):
                        __, add_to_prev = self.preprocess_line(line, line_num + 1, add_to_prev, exprs)
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

            for line, line_num in exprs:
                self.add(line, line_num)

        elif not cmd_line:
            raise GenericException("'<in>' is a reserved filename", diagnosis=False)

    @staticmethod
    def preprocess_line(line, line_num, add_to_prev, exprs=None):
        """Preprocesses a line from a file or command-line. In command-line mode, exprs can be ignored (used to keep
        track of file's exprs), but add_to_prev will indicate whether a line continuation is necessary. Returns
        updated value of line and add_to_prev. Must be called before calling add.
        """
        if Session.COMMENT in line:
            line = line[:line.index(Session.COMMENT)]  # get rid of comments

        line = line.strip()
        if not line:
            return line, add_to_prev  # blank lines do not end a continuation

        if exprs is not None:
            if add_to_prev and exprs:
                prev, prev_num = exprs.pop()
                line = f"{prev} {line}"
                exprs.append((line, prev_num))
            else:
                exprs.append((line, line_num))

        return line, line.count("(") > line.count(")")

    def add(self, line, line_num):
        """Parses line and queues it in the current session. Evaluation is delayed until run is called."""
        self.error_handler.register_line(self.path, line, line_num)  # in case error is raised

        self.to_exec[line_num] = (line, parse(line))

        self.error_handler.remove_line(self.path)  # error was not raised

    def run(self):
        """Evaluates this session's queued expressions in order, appending each normal form to self.results. Will raise
        any errors that are encountered; bindings made before the error are kept.
        """
        for line_num, (line, expr) in list(self.to_exec.items()):
            self.error_handler.register_line(self.path, line, line_num)

            try:
                self._warn_overwrites(expr)
                self.results.append(self.evaluator.evaluate(expr, self.error_handler))
            except UnboundMetavariable as error:
                raise error.locate(line)
            finally:
                del self.to_exec[line_num]

            self.error_handler.remove_line(self.path)

    def _warn_overwrites(self, expr):
        """Warns about every binding in expr whose name is already bound."""
        for node in expr.walk():
            if isinstance(node, Binding) and node.name in self.evaluator.environment:
                self.error_handler.warn("binding overwrites '{}'", node.name, diagnosis=False)

    def pop(self):
        """Removes and returns the most recent result."""
        return self.results.pop()

    @property
    def environment(self):
        return self.evaluator.environment
