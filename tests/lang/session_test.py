import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from metalambda.lang.error import (ErrorHandler, GenericException, InvariantViolation, ParseError,
                                   UnboundMetavariable)
from metalambda.lang.session import Session
from metalambda.lang.shell import Shell


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.error_handler = ErrorHandler(fatal=False)
        self.sess = Session(self.error_handler, Session.SH_FILE, cmd_line=True)

    def run_lines(self, *lines):
        for line_num, line in enumerate(lines):
            self.sess.add(line, line_num + 1)
        with redirect_stdout(io.StringIO()):
            self.sess.run()
        return [str(result) for result in self.sess.results]

    def test_run(self):
        self.assertEqual([r"\x.x", "z"], self.run_lines(r"ID <- \x.x", "ID z"))
        self.assertEqual({}, self.sess.to_exec)
        self.assertEqual("z", str(self.sess.pop()))

    def test_unbound_metavariable(self):
        should_raise = {"NOPE x": (0, 4), "x NOPE": (2, 6), r"\x.x NOPE": (5, 9)}
        for case, (start, end) in should_raise.items():
            self.sess.add(case, 1)
            with self.assertRaises(UnboundMetavariable, msg=case) as context:
                self.sess.run()
            self.assertEqual(case, context.exception.expr)
            self.assertEqual((start, end), (context.exception.start, context.exception.end), case)
            self.assertEqual({}, self.sess.to_exec)

    def test_parse_error(self):
        self.assertRaises(ParseError, self.sess.add, "x)", 1)

    def test_preprocess_line(self):
        cases = {
            "x ;; comment": ("x", False),
            "  ;; only a comment": ("", False),
            "(x": ("(x", True),
            "  (x y) z  ": ("(x y) z", False),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, Session.preprocess_line(case, 1, False), case)

    def test_preprocess_file_lines(self):
        exprs = []
        add_to_prev = False
        for line_num, line in enumerate(["ID (", "", "  z)", "K a b"]):
            __, add_to_prev = Session.preprocess_line(line, line_num + 1, add_to_prev, exprs)

        self.assertEqual([("ID ( z)", 1), ("K a b", 4)], exprs)

    def test_overwrite_warning(self):
        self.sess.add(r"I <- \x.x", 1)
        output = io.StringIO()
        with redirect_stdout(output):
            self.sess.run()
        self.assertIn("warning: ", output.getvalue())
        self.assertIn("I", output.getvalue())

    def test_max_steps(self):
        sess = Session(self.error_handler, Session.SH_FILE, cmd_line=True, max_steps=10, prelude=False)
        self.assertEqual({}, dict(sess.environment))
        sess.add(r"(\x.x x) (\x.x x)", 1)
        self.assertRaises(GenericException, sess.run)

    def test_reserved_filename(self):
        self.assertRaises(GenericException, Session, ErrorHandler(), Session.SH_FILE, False)


class FileSessionTestCase(unittest.TestCase):

    def setUp(self):
        with tempfile.NamedTemporaryFile("w", suffix=".lc", delete=False, encoding="utf-8") as file:
            file.write(";; identity, then a continued application\n"
                       "ID <- \\x.x\n"
                       "ID (\n"
                       "  z)\n"
                       "\n"
                       "FST (PAIR a b) ;; first projection\n")
            self.path = file.name

    def tearDown(self):
        os.remove(self.path)

    def test_run(self):
        sess = Session(ErrorHandler(), self.path, cmd_line=False)
        with redirect_stdout(io.StringIO()):
            sess.run()
        self.assertEqual([r"\x.x", "z", "a"], [str(result) for result in sess.results])

    def test_missing_file(self):
        self.assertRaises(GenericException, Session, ErrorHandler(), self.path + ".missing", False)


class ErrorHandlerTestCase(unittest.TestCase):

    def test_non_fatal(self):
        output = io.StringIO()
        with redirect_stdout(output):
            with ErrorHandler(fatal=False):
                raise GenericException("'{}' is broken", "x y")
        self.assertIn("error: ", output.getvalue())
        self.assertIn("^", output.getvalue())

    def test_fatal(self):
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit):
                with ErrorHandler():
                    raise GenericException("'{}' is broken", "x y")

    def test_internal_not_absorbed(self):
        error_handler = ErrorHandler(fatal=False)
        output = io.StringIO()
        with redirect_stdout(output):
            with self.assertRaises(SystemExit) as context:
                with error_handler:
                    with error_handler:
                        raise InvariantViolation("unexpanded metavariable '{}' reached reduction", "K")
        self.assertEqual(1, context.exception.code)
        self.assertEqual(1, output.getvalue().count("[internal]"))

    def test_unknown_error(self):
        output = io.StringIO()
        with redirect_stdout(output):
            with self.assertRaises(SystemExit):
                with ErrorHandler(fatal=False):
                    raise ValueError("boom")
        self.assertIn("unknown error: 'ValueError: boom'", output.getvalue())

    def test_recursion_error(self):
        output = io.StringIO()
        with redirect_stdout(output):
            with ErrorHandler(fatal=False):
                raise RecursionError()
        self.assertIn("maximum recursion depth exceeded", output.getvalue())

    def test_traceback_location(self):
        error_handler = ErrorHandler(fatal=False)
        error_handler.register_file("prog.lc")
        error_handler.register_line("prog.lc", "x NOPE", 3)

        output = io.StringIO()
        with redirect_stdout(output):
            error_handler.throw(UnboundMetavariable("NOPE").locate("x NOPE"))
        self.assertIn("prog.lc:3:3: ", output.getvalue())
        self.assertEqual({"prog.lc": (None, None)}, error_handler.traceback)

    def test_latest_registered_line(self):
        error_handler = ErrorHandler(fatal=False)
        error_handler.register_line("first.lc", "x", 1)
        error_handler.register_line("second.lc", "y NOPE", 7)

        output = io.StringIO()
        with redirect_stdout(output):
            error_handler.throw(UnboundMetavariable("NOPE").locate("y NOPE"))
        self.assertIn("second.lc:7:3: ", output.getvalue())
        self.assertNotIn("first.lc", output.getvalue())

        output = io.StringIO()
        with redirect_stdout(output):
            error_handler.throw(GenericException("'{}' is broken", "x y"))
        self.assertIn("error: ", output.getvalue())
        self.assertNotIn(".lc:", output.getvalue())  # traceback was reset by the previous error

    def test_register_step(self):
        output = io.StringIO()
        with redirect_stdout(output):
            ErrorHandler().register_step("β", "y")
            ErrorHandler(verbose=True).register_step("β", "z")
        self.assertNotIn("y", output.getvalue())
        self.assertIn("z", output.getvalue())


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        self.shell = Shell(Session(ErrorHandler(), Session.SH_FILE, cmd_line=True))

    def run_command(self, line):
        output = io.StringIO()
        with redirect_stdout(output):
            stop = self.shell.onecmd(line)
        return stop, output.getvalue()

    def test_evaluate(self):
        self.run_command(r"ID <- \x.x")
        self.assertEqual((None, "q\n"), self.run_command("ID q"))

    def test_continuation(self):
        self.run_command("K (")
        self.assertEqual(Shell.secondary_prompt, self.shell.prompt)
        self.assertEqual((None, "a\n"), self.run_command("a) b"))
        self.assertEqual(Shell._tmp_prompt, self.shell.prompt)

    def test_error_does_not_stop(self):
        stop, output = self.run_command("x NOPE")
        self.assertFalse(stop)
        self.assertIn("unbound metavariable", output)
        self.assertEqual((None, "a\n"), self.run_command("K a b"))

    def test_binding_under_binder(self):
        self.assertEqual((None, "z\n"), self.run_command(r"(\y.(A <- y)) z"))
        self.assertEqual((None, "z\n"), self.run_command("A"))

    def test_env(self):
        __, output = self.run_command("env")
        self.assertIn("K <- \\x.\\y.x\n", output)

        __, output = self.run_command("env I NOPE")
        self.assertEqual("I <- \\x.x\nNOPE is not bound\n", output)

    def test_tree(self):
        __, output = self.run_command("tree x")
        self.assertEqual("Variable(expr='x')\n", output)

    def test_trace(self):
        self.run_command("trace")
        __, output = self.run_command("I y")
        self.assertIn("β", output)

    def test_exit(self):
        for case in [":q", "quit", "exit", "EOF"]:
            stop, __ = self.run_command(case)
            self.assertTrue(stop, case)


if __name__ == '__main__':
    unittest.main()
