"""Handles interactive/command-line mode for the metalambda interpreter. Uses cmd as backend."""

import cmd

from metalambda.lang.lexical import parse


class Shell(cmd.Cmd):
    """Lambda calculus interpreter shell."""
    intro = "metalambda :: lambda calculus interpreter\nType '?' or 'help' for more information."
    prompt = "\\>> "
    secondary_prompt = ". "  # used for line continutations
    _tmp_prompt = "\\>> "    # also used for prompt swapping in line continuations
    QUIT = (":q", "quit")

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0

    def default(self, line):
        """Evaluates arbitrary metalambda expression."""
        if line.strip() in Shell.QUIT and not self._tmp_line:
            return True

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            joined = f"{self._tmp_line} {line}" if self._tmp_line else line
            line, add_to_prev = self.sess.preprocess_line(joined, self.line_num, self._tmp_line)

            if add_to_prev:
                self._tmp_line = line
                self.prompt = self.secondary_prompt
                return
            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            if not line:
                return  # if line is empty (ex: only a comment), terminate

            self.sess.add(line, self.line_num)
            self.sess.run()

            if self.sess.results:
                print(self.sess.pop())

    def do_env(self, arg):
        """Lists bound names and their values. With arguments, only lists those names."""
        names = arg.split() if arg else list(self.sess.environment)
        for name in names:
            value = self.sess.environment.get(name)
            print(f"{name} <- {value}" if value is not None else f"{name} is not bound")

    def do_tree(self, arg):
        """Displays the syntax tree of an expression without evaluating it."""
        with self.sess.error_handler:
            print(parse(arg).display())

    def do_trace(self, arg):
        """Toggles printing of evaluation steps (δ: expansion, β: beta reduction)."""
        self.sess.error_handler.verbose = not self.sess.error_handler.verbose
        print(f"tracing {'on' if self.sess.error_handler.verbose else 'off'}")

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        if arg:
            return super().do_help(arg)
        print("Welcome to the metalambda interpreter!\n\n"
              "Lambda calculus is a Turing-complete language created by Alonzo Church. This \n"
              "interpreter reduces λ-terms (written \\x.body or λx.body) to their normal form, \n"
              "and lets you name terms with capitalized metavariables.\n\n"
              "Try it out by typing 'ID <- \\x.x'. This will bind the λ-term '\\x.x' to the \n"
              "name 'ID'. Next, try typing 'ID y'. This will apply 'ID' to 'y', giving 'y' as \n"
              "the result. Type 'env' to see every bound name, 'trace' to watch reductions.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True

    do_quit = do_exit
