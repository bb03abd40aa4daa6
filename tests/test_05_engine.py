"""
Expansion driver tests
======================
  - Both strategies produce the same output for line-shaped sites
  - Placeholders and diagnostics for every failure kind; later sites still expand
  - Host syntax errors return the input untouched
  - Reparse-only shapes: several sites on a line, sites nested in arguments
  - Recursive expansion of sites inside target modules, pass limit
  - Host context bookkeeping: dependencies, cacheable flag, extensions
"""

from __future__ import annotations

import pytest

from jsinline.macros import FileSystemContext, InlineEngine, transform
from jsinline.macros.locator import MacroInvocation
from jsinline.macros.syntax import parse_arguments
from tests.conftest import js, make_settings

STRATEGIES = ["reparse", "sweep"]

HOST = js("""
    function run(a) {
      var y = %inline('./ops').double(a + 1);
      %inline('./ops').log(y);
      return y;
    }
""")

EXPANDED = js("""
    function run(a) {
      var y = (a + 1) * 2;
      console.log(y);
      calls++;
      return y;
    }
""")


def messages(ctx: FileSystemContext) -> list[str]:
    return [d.message for d in ctx.diagnostics]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. Expansion
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@pytest.mark.usefixtures("ops_module")
class TestExpansion:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_expression_and_statement_sites(self, make_engine, ctx, strategy):
        assert make_engine(strategy=strategy).transform(HOST) == EXPANDED
        assert ctx.diagnostics == []

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_statement_site_keeps_indent(self, make_engine, strategy):
        out = make_engine(strategy=strategy).transform("if (x) {\n    %inline('./ops').log(x);\n}\n")
        assert out == "if (x) {\n    console.log(x);\n    calls++;\n}\n"

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_two_arguments(self, make_engine, strategy):
        out = make_engine(strategy=strategy).transform("var p = %inline('./ops').pair(1, 'b');\n")
        assert out == "var p = [1, 'b'];\n"

    def test_strategies_agree_on_multiline_results(self, make_engine, write_module):
        write_module("build.js", """
            export function point(x, y) {
              return {
                x: x,
                y: y
              };
            }
        """)
        host = "function make() {\n  var p = %inline('./build').point(1, 2);\n  return p;\n}\n"
        reparsed = make_engine(strategy="reparse").transform(host)
        swept = make_engine(strategy="sweep").transform(host)
        assert reparsed == swept
        assert "      x: 1,\n" in reparsed

    def test_no_sites_is_passthrough(self, make_engine, ctx):
        source = "var a = 1;\n"
        assert make_engine().transform(source) == source
        assert ctx.dependencies == []

    def test_expand_single_invocation(self, make_engine):
        site = MacroInvocation(module="./ops", function="double", arguments=parse_arguments("q"))
        rendered = make_engine().expand(site)
        assert rendered.text == "q * 2"
        assert rendered.expression

    def test_module_function(self, ctx):
        out = transform("var y = %inline('./ops').double(3);\n", ctx, make_settings())
        assert out == "var y = 3 * 2;\n"

    def test_more_sites_than_max_passes(self, make_engine, ctx):
        out = make_engine(max_passes=1).transform(
            "a = %inline('./ops').double(1);\nb = %inline('./ops').double(2);\nc = %inline('./ops').double(3);\n"
        )
        assert out == "a = 1 * 2;\nb = 2 * 2;\nc = 3 * 2;\n"
        assert ctx.diagnostics == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1b. Result shapes that need parentheses in place
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@pytest.mark.usefixtures("ops_module")
class TestResultShapes:
    @pytest.fixture(autouse=True)
    def shapes(self, write_module):
        write_module("shapes.js", """
            export function mk(a, b) {
              return {a: a, b: b};
            }

            export function handler(n) {
              return function () { return n; };
            }

            export function both(a) {
              return (g(a), a);
            }

            export function nothing() {
              return;
            }
        """)

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_object_at_statement_start(self, make_engine, ctx, strategy):
        out = make_engine(strategy=strategy).transform(
            "var y = %inline('./ops').double(3);\n%inline('./shapes').mk(1, 2);\n"
        )
        assert out == "var y = 3 * 2;\n({a: 1, b: 2});\n"
        assert ctx.diagnostics == []

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_object_in_declaration_is_left_bare(self, make_engine, strategy):
        out = make_engine(strategy=strategy).transform("var o = %inline('./shapes').mk(1, 2);\n")
        assert out == "var o = {a: 1, b: 2};\n"

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_function_at_statement_start(self, make_engine, ctx, strategy):
        out = make_engine(strategy=strategy).transform("%inline('./shapes').handler(5);\n")
        assert out == "(function () { return 5; });\n"
        assert ctx.diagnostics == []

    @pytest.mark.parametrize("strategy", STRATEGIES)
    @pytest.mark.parametrize("head", ["y = ", "var y = "])
    def test_sequence_in_assignment(self, make_engine, ctx, strategy, head):
        out = make_engine(strategy=strategy).transform(head + "%inline('./shapes').both(1);\n")
        assert out == head + "(g(1), 1);\n"
        assert ctx.diagnostics == []

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_sequence_as_statement_is_left_bare(self, make_engine, strategy):
        out = make_engine(strategy=strategy).transform("%inline('./shapes').both(1);\n")
        assert out == "g(1), 1;\n"

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_empty_result_where_a_value_is_needed(self, make_engine, strategy):
        out = make_engine(strategy=strategy).transform("var u = %inline('./shapes').nothing();\n")
        assert out == "var u = undefined;\n"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. Failures
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@pytest.mark.usefixtures("ops_module")
class TestFailures:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_arity_mismatch(self, make_engine, ctx, strategy):
        out = make_engine(strategy=strategy).transform(
            "var a = %inline('./ops').clamp(1, 2);\nvar b = %inline('./ops').double(3);\n"
        )
        assert out == "var a = /* Invalid syntax for clamp */;\nvar b = 3 * 2;\n"
        assert messages(ctx) == ["Function clamp is expecting exactly 3 arguments, but got 2"]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_missing_module(self, make_engine, ctx, strategy):
        out = make_engine(strategy=strategy).transform(
            "var a = %inline('./nope').f(1);\nvar b = %inline('./ops').double(2);\n"
        )
        assert out == "var a = /* Missing module ./nope */;\nvar b = 2 * 2;\n"
        assert messages(ctx) == ["Could not find module `./nope`"]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_unknown_function(self, make_engine, ctx, strategy):
        out = make_engine(strategy=strategy).transform("var a = %inline('./ops').triple(1);\n")
        assert out == "var a = /* Unknown inline triple */;\n"
        assert messages(ctx) == ['%inline("./ops"): Undefined function `triple`']

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_module_parse_error(self, make_engine, ctx, write_module, strategy):
        write_module("broken.js", "export function (")
        out = make_engine(strategy=strategy).transform("var a = %inline('./broken').f(1);\n")
        assert out == "var a = /* Parsing error in module ./broken */;\n"
        assert messages(ctx)[0].startswith('%inline("./broken"): ')

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_undecodable_module(self, make_engine, ctx, module_dir, strategy):
        (module_dir / "bad.js").write_bytes(b"\xff\xfeexport function f() {}")
        out = make_engine(strategy=strategy).transform("var a = %inline('./bad').f();\n")
        assert out == "var a = /* Parsing error in module ./bad */;\n"
        (message,) = messages(ctx)
        assert message.startswith('%inline("./bad"): ')
        assert "can't decode" in message
        assert ctx.dependencies == [str(module_dir / "bad")]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_statement_site_failure(self, make_engine, strategy):
        out = make_engine(strategy=strategy).transform("%inline('./ops').log(1, 2);\n")
        assert out == "/* Invalid syntax for log */;\n"

    def test_sweep_bad_arguments(self, make_engine, ctx):
        out = make_engine(strategy="sweep").transform("var a = %inline('./ops').double(1,,);\n")
        assert out == "var a = /* Invalid arguments for double */;\n"
        assert messages(ctx)[0].startswith("Invalid arguments for double: ")

    def test_reparse_bad_arguments_fail_the_file(self, make_engine, ctx):
        source = "var a = %inline('./ops').double(1,,);\n"
        assert make_engine().transform(source) == source
        assert messages(ctx)[0].startswith("Inline processing failed: SyntaxError: ")

    def test_host_syntax_error_returns_input(self, make_engine, ctx):
        source = "var = %inline('./ops').double(1);\n"
        assert make_engine().transform(source) == source
        assert len(ctx.diagnostics) == 1
        assert ctx.diagnostics[0].origin == "host.js"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. Reparse-only shapes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@pytest.mark.usefixtures("ops_module")
class TestReparseShapes:
    def test_several_sites_on_one_line(self, make_engine):
        out = make_engine().transform(
            "var p = [%inline('./ops').double(1), %inline('./ops').double(2)];\n"
        )
        assert out == "var p = [(1 * 2), (2 * 2)];\n"

    def test_site_nested_in_arguments(self, make_engine):
        out = make_engine().transform(
            "var z = %inline('./ops').double(%inline('./ops').double(1));\n"
        )
        assert out == "var z = (1 * 2) * 2;\n"

    def test_operand_position(self, make_engine):
        out = make_engine().transform("var z = 1 + %inline('./ops').double(n);\n")
        assert out == "var z = 1 + (n * 2);\n"

    def test_sweep_leaves_multi_site_lines_alone(self, make_engine):
        source = "var p = [%inline('./ops').double(1), %inline('./ops').double(2)];\n"
        assert make_engine(strategy="sweep").transform(source) == source


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. Recursive expansion
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
class TestRecursive:
    @pytest.fixture(autouse=True)
    def modules(self, write_module):
        write_module("inner.js", """
            export function double(x) {
              return x * 2;
            }
        """)
        write_module("outer.js", """
            export function quad(x) {
              return %inline('./inner').double(x) * 2;
            }
        """)

    def test_nested_sites_expand(self, make_engine, ctx, module_dir):
        out = make_engine(recursive=True).transform("var y = %inline('./outer').quad(n);\n")
        assert out == "var y = (n * 2) * 2;\n"
        assert ctx.dependencies == [str(module_dir / "outer"), str(module_dir / "inner")]

    def test_nested_sites_are_a_parse_error_by_default(self, make_engine):
        out = make_engine().transform("var y = %inline('./outer').quad(n);\n")
        assert out == "var y = /* Parsing error in module ./outer */;\n"

    def test_pass_limit(self, make_engine, ctx, write_module):
        write_module("loop.js", """
            export function spin(x) {
              return %inline('./loop').spin(x);
            }
        """)
        out = make_engine(recursive=True, max_passes=3).transform("var y = %inline('./loop').spin(1);\n")
        assert out == "var y = /* Inline depth exceeded for spin */;\n"
        assert messages(ctx) == ["Inline expansion of spin stopped after 3 passes"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 5. Host context bookkeeping
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
class TestHostContext:
    def test_dependencies_and_cacheable(self, make_engine, ctx, ops_module, module_dir):
        make_engine().transform(HOST)
        assert ctx.dependencies == [str(module_dir / "ops")]
        assert ctx.cacheable

    def test_missing_module_registers_nothing(self, make_engine, ctx):
        make_engine().transform("%inline('./nope').f();\n")
        assert ctx.dependencies == []
        assert ctx.cacheable

    def test_explicit_extension(self, make_engine, ops_module):
        assert make_engine().transform("var y = %inline('./ops.js').double(1);\n") == "var y = 1 * 2;\n"

    def test_custom_extensions(self, module_dir, write_module):
        write_module("lib.mjs", "export const inc = (a) => a + 1;")
        ctx = FileSystemContext(module_dir, extensions=[".mjs"])
        out = InlineEngine(ctx, make_settings()).transform("var y = %inline('./lib').inc(v);\n")
        assert out == "var y = v + 1;\n"

    def test_first_extension_wins(self, module_dir, write_module):
        write_module("dup", "export function f() { return 'bare'; }")
        write_module("dup.js", "export function f() { return 'js'; }")
        ctx = FileSystemContext(module_dir, extensions=["", ".js"])
        assert InlineEngine(ctx, make_settings()).transform("x = %inline('./dup').f();\n") == "x = 'bare';\n"
