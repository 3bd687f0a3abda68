# =============================================================================
# test_codegen.py - Go Code Generator Tests
# =============================================================================
# Tests for Go generation from the godsl AST.
#
# Test coverage includes:
#   - Pass-through of plain Go constructs
#   - Result augmentation of functions containing try/throw
#   - try/catch/finally lowering into a closure and an if/else-if chain
#   - throw lowering and zero values
#   - errors/fmt import injection
#   - Minimal parenthesisation of expressions
# =============================================================================

import logging

import pytest

from godsl.transpiler.ast import CatchBlock, ExpressionStatement, Program
from godsl.transpiler.codegen import (
    CodeGenerator,
    augment_return_type,
    contains_throw,
    needs_error_handling,
    split_result_types,
    zero_value,
)
from godsl.transpiler.lexer import Lexer
from godsl.transpiler.parser import parse_source


# =============================================================================
# Helper Functions
# =============================================================================

def generate(source: str) -> str:
    """Parse source, which must be valid, and generate Go."""
    program, errors = parse_source(source)
    assert errors == [], errors
    return CodeGenerator().generate(program)


def go(*lines: str) -> str:
    """Join expected output lines; tabs are written explicitly."""
    return "\n".join(lines) + "\n"


def function_body(source: str) -> list[str]:
    """Generate source and return the lines between the first { and last }."""
    output = generate(source).splitlines()
    start = next(i for i, line in enumerate(output) if line.startswith("func "))
    return output[start + 1:-1]


# =============================================================================
# Pass-Through Tests
# =============================================================================

class TestPassThrough:
    """Plain Go constructs are emitted unchanged apart from layout."""

    def test_empty_program(self):
        assert generate("") == ""

    def test_simple_function(self):
        source = "package main\n\nfunc add(a int, b int) int { return a + b }"
        assert generate(source) == go(
            "package main",
            "",
            "func add(a int, b int) int {",
            "\treturn a + b",
            "}",
        )

    def test_imports_without_throw_are_untouched(self):
        assert generate('package main\nimport "os"') == go(
            "package main",
            "",
            'import "os"',
        )

    def test_grouped_import(self):
        assert generate('import (\n"fmt"\n"os"\n)') == go(
            "import (",
            '\t"fmt"',
            '\t"os"',
            ")",
        )

    def test_declarations(self):
        source = 'var count int = 10\nconst name = "x"\nvar ready bool'
        assert generate(source) == go(
            "var count int = 10",
            'const name = "x"',
            "var ready bool",
        )

    def test_simple_statements(self):
        source = "func f() {\nx := 1\nx += 2\na, b = b, a\ns.count++\nfmt.Println(x)\n}"
        assert function_body(source) == [
            "\tx := 1",
            "\tx += 2",
            "\ta, b = b, a",
            "\ts.count++",
            "\tfmt.Println(x)",
        ]

    def test_literal_spelling_is_kept(self):
        body = function_body("func f() {\nx := 0x1F\ny := 1e9\nc := '\\n'\nr := `raw`\n}")
        assert body == ["\tx := 0x1F", "\ty := 1e9", "\tc := '\\n'", "\tr := `raw`"]

    def test_comments(self):
        assert generate("// note\n/* block */") == go("// note", "/* block */")

    def test_else_if_chain(self):
        source = "func f() {\nif a { x() } else if b { y() } else { z() }\n}"
        assert function_body(source) == [
            "\tif a {",
            "\t\tx()",
            "\t} else if b {",
            "\t\ty()",
            "\t} else {",
            "\t\tz()",
            "\t}",
        ]

    @pytest.mark.parametrize("header,expected", [
        ("for i := 0; i < 10; i++", "for i := 0; i < 10; i++ {"),
        ("for i := 0; ; i++", "for i := 0; ; i++ {"),
        ("for n > 0", "for n > 0 {"),
        ("for", "for {"),
        ("for ; ;", "for {"),
    ])
    def test_for_forms(self, header, expected):
        body = function_body(f"func f() {{\n{header} {{ break }}\n}}")
        assert body == [f"\t{expected}", "\t\tbreak", "\t}"]

    def test_blank_line_between_functions(self):
        source = "func a() { }\n// b does nothing\nfunc b() { }"
        assert generate(source) == go(
            "func a() {",
            "}",
            "",
            "// b does nothing",
            "func b() {",
            "}",
        )

    def test_unknown_node_is_placeholder(self):
        token = Lexer("catch").next_token()
        program = Program(token, (CatchBlock(token),))
        assert CodeGenerator().generate(program) == go("/* unsupported node: CatchBlock */")

    def test_missing_child_is_placeholder(self):
        token = Lexer("x").next_token()
        program = Program(token, (ExpressionStatement(token),))
        assert CodeGenerator().generate(program) == go("/* unsupported node: NoneType */")


# =============================================================================
# Expression Tests
# =============================================================================

class TestExpressions:
    """Parentheses appear only where precedence requires them."""

    @pytest.mark.parametrize("source,expected", [
        ("a + b * c", "a + b * c"),
        ("(a + b) * c", "(a + b) * c"),
        ("a - (b - c)", "a - (b - c)"),
        ("(a - b) - c", "a - b - c"),
        ("-(a + b)", "-(a + b)"),
        ("!ok && (x || y)", "!ok && (x || y)"),
        ("(a == b) == c", "a == b == c"),
        ("xs[i + 1]", "xs[i + 1]"),
        ("obj.items[0].Name()", "obj.items[0].Name()"),
        ("f(a, (b))", "f(a, b)"),
        ("1 << (n + 1)", "1 << (n + 1)"),
    ])
    def test_parenthesisation(self, source, expected):
        assert function_body(f"func f() {{\nx := {source}\n}}") == [f"\tx := {expected}"]

    def test_long_left_associative_chain(self):
        """Very long operator chains generate without hitting the recursion limit."""
        chain = " + ".join(["s"] * 2000)
        body = function_body(f"func f(s string) string {{\nreturn {chain}\n}}")
        assert body == [f"\treturn {chain}"]

    def test_long_chain_keeps_inner_parentheses(self):
        chain = " - ".join(["(a - b)"] + ["c"] * 1500)
        body = function_body(f"func f() {{\nx := y - ({chain})\n}}")
        expected = " - ".join(["a - b"] + ["c"] * 1500)
        assert body == [f"\tx := y - ({expected})"]

    def test_long_chain_in_throwing_program(self):
        chain = " * ".join(["n"] * 2000)
        output = generate(f'func f(n int) int {{\nif n < 0 {{ throw "negative" }}\nreturn {chain}\n}}')
        assert f"\treturn {chain}, nil" in output.splitlines()
        assert '"errors"' in output


# =============================================================================
# Analysis Helper Tests
# =============================================================================

class TestAnalysis:
    """needs_error_handling, result splitting and zero values."""

    def test_needs_error_handling_searches_nested_blocks(self):
        program, _ = parse_source(
            'func f() {\nfor {\nif x { } else { throw "e" }\n}\n}\nfunc g() { x() }'
        )
        f, g = program.statements
        assert needs_error_handling(f)
        assert not needs_error_handling(g)

    def test_contains_throw(self):
        program, _ = parse_source("func f() { try { } catch { } }")
        assert not contains_throw(program)
        program, _ = parse_source('func f() { try { throw "x" } catch { } }')
        assert contains_throw(program)

    @pytest.mark.parametrize("source", [
        'func f() { try { } catch (e MyErr) { throw e } }',
        'func f() { try { } finally { throw "late" } }',
        'func f() { for { if a { } else if b { throw "b" } } }',
        'throw "top level"',
    ])
    def test_contains_throw_searches_statements(self, source):
        program, errors = parse_source(source)
        assert errors == []
        assert contains_throw(program)

    @pytest.mark.parametrize("declared,expected", [
        (None, "error"),
        ("int", "(int, error)"),
        ("error", "error"),
        ("(int, string)", "(int, string, error)"),
        ("(*Config, error)", "(*Config, error)"),
    ])
    def test_augment_return_type(self, declared, expected):
        assert augment_return_type(declared) == expected

    def test_split_respects_nesting(self):
        assert split_result_types("(map[string]int, func(int, int) bool)") == [
            "map[string]int",
            "func(int, int) bool",
        ]
        assert split_result_types("int") == ["int"]
        assert split_result_types(None) == []

    @pytest.mark.parametrize("type_name,expected", [
        ("int", "0"),
        ("float64", "0"),
        ("byte", "0"),
        ("string", '""'),
        ("bool", "false"),
        ("error", "nil"),
        ("*Config", "nil"),
        ("[]string", "nil"),
        ("map[string]int", "nil"),
        ("chan int", "nil"),
        ("func() error", "nil"),
        ("interface{}", "nil"),
        ("Point", "*new(Point)"),
        ("time.Duration", "*new(time.Duration)"),
    ])
    def test_zero_value(self, type_name, expected):
        assert zero_value(type_name) == expected


# =============================================================================
# Function Signature Tests
# =============================================================================

class TestSignatures:
    """Functions containing try or throw gain an error result."""

    def test_throw_adds_error_to_single_result(self):
        source = 'package main\n\nfunc risky() int {\nthrow "boom"\n}'
        assert generate(source) == go(
            "package main",
            "",
            "import (",
            '\t"errors"',
            '\t"fmt"',
            ")",
            "",
            "func risky() (int, error) {",
            '\treturn 0, errors.New(fmt.Sprintf("%v", "boom"))',
            "}",
        )

    def test_returns_gain_nil_error(self):
        source = 'func f(x bool) int {\nif x { throw "bad" }\nreturn 1\n}'
        lines = generate(source).splitlines()
        assert "func f(x bool) (int, error) {" in lines
        assert "\treturn 1, nil" in lines

    def test_try_alone_adds_error_to_single_result(self):
        """A try without any throw still gives the function an error result."""
        source = "func risky() int { try { } catch (e) { } return 0 }"
        lines = generate(source).splitlines()
        assert "func risky() (int, error) {" in lines
        assert "\treturn 0, nil" in lines

    def test_no_result_function_gets_final_return(self):
        body = function_body("func run() {\ntry { work() } catch { }\n}")
        assert body[-1] == "\treturn nil"

    def test_no_final_return_after_throw(self):
        source = 'func run(x bool) {\nif x { return }\nthrow "e"\n}'
        assert function_body(source) == [
            "\tif x {",
            "\t\treturn nil",
            "\t}",
            '\treturn errors.New(fmt.Sprintf("%v", "e"))',
        ]

    def test_existing_error_result_is_unchanged(self):
        source = 'func load() (string, error) {\nthrow "missing"\nreturn "ok", nil\n}'
        lines = generate(source).splitlines()
        assert "func load() (string, error) {" in lines
        assert '\treturn "", errors.New(fmt.Sprintf("%v", "missing"))' in lines
        assert '\treturn "ok", nil' in lines

    def test_plain_function_is_not_augmented(self):
        assert generate("func f() { g() }") == go("func f() {", "\tg()", "}")


# =============================================================================
# Try/Catch Lowering Tests
# =============================================================================

class TestTryLowering:
    """try statements become a closure plus a catch chain."""

    def test_catch_all_with_binding(self):
        source = "func run() {\ntry {\nx := 1\n} catch (e) {\nlog(e)\n}\n}"
        assert generate(source) == go(
            "func run() error {",
            "\terr := func() error {",
            "\t\tx := 1",
            "\t\treturn nil",
            "\t}()",
            "\tif err != nil {",
            "\t\te := err",
            "\t\t_ = e",
            "\t\tlog(e)",
            "\t}",
            "\treturn nil",
            "}",
        )

    def test_typed_chain_with_finally(self):
        source = (
            "func run() {\n"
            "try { work() }"
            " catch (e *NotFound) { a(e) }"
            " catch (e Timeout) { b() }"
            " catch { c() }"
            " finally { done() }\n"
            "}"
        )
        assert function_body(source) == [
            "\terr := func() error {",
            "\t\twork()",
            "\t\treturn nil",
            "\t}()",
            "\tif err != nil {",
            "\t\tif e, ok := err.(*NotFound); ok {",
            "\t\t\t_ = e",
            "\t\t\ta(e)",
            "\t\t} else if e, ok := err.(Timeout); ok {",
            "\t\t\t_ = e",
            "\t\t\tb()",
            "\t\t} else {",
            "\t\t\tc()",
            "\t\t}",
            "\t}",
            "\tdone()",
            "\treturn nil",
        ]

    def test_typed_only_chain_is_closed(self):
        body = function_body("func run() {\ntry { w() } catch (e MyErr) { h() }\n}")
        assert body[4:] == [
            "\tif err != nil {",
            "\t\tif e, ok := err.(MyErr); ok {",
            "\t\t\t_ = e",
            "\t\t\th()",
            "\t\t}",
            "\t}",
            "\treturn nil",
        ]

    def test_try_without_catch_discards_error(self):
        body = function_body("func run() {\ntry { w() } finally { done() }\n}")
        assert body == [
            "\terr := func() error {",
            "\t\tw()",
            "\t\treturn nil",
            "\t}()",
            "\t_ = err",
            "\tdone()",
            "\treturn nil",
        ]

    def test_second_try_reuses_err(self):
        body = function_body("func run() {\ntry { a() } catch { }\ntry { b() } catch { }\n}")
        assert "\terr := func() error {" in body
        assert "\terr = func() error {" in body

    def test_nested_block_declares_new_err(self):
        source = "func run() {\ntry { a() } catch { }\nif x {\ntry { b() } catch { }\n}\n}"
        assert "\t\terr := func() error {" in function_body(source)

    def test_throw_inside_try_returns_only_error(self):
        source = 'func f() int {\ntry { throw "x" } catch (e) { }\nreturn 1\n}'
        body = function_body(source)
        assert '\t\treturn errors.New(fmt.Sprintf("%v", "x"))' in body
        assert "\treturn 1, nil" in body

    def test_catches_after_catch_all_are_dropped(self, caplog):
        source = "func run() {\ntry { w() } catch { a() } catch (e MyErr) { b() }\n}"
        with caplog.at_level(logging.WARNING, logger="godsl.transpiler.codegen"):
            output = generate(source)
        assert "MyErr" not in output
        assert "\t\ta()" in output.splitlines()
        assert "can never run" in caplog.text

    def test_underscore_binding_is_not_declared(self):
        body = function_body("func run() {\ntry { w() } catch (_) { h() }\n}")
        assert "\t\t_ := err" not in body
        assert "\t\th()" in body


# =============================================================================
# Import Injection Tests
# =============================================================================

class TestImportInjection:
    """errors and fmt are imported when, and only when, a throw exists."""

    def test_merged_into_existing_import(self):
        output = generate('package main\nimport "os"\nfunc f() { throw "x" }')
        assert output.startswith(go(
            "package main",
            "",
            "import (",
            '\t"os"',
            '\t"errors"',
            '\t"fmt"',
            ")",
        ))

    def test_existing_paths_are_not_duplicated(self):
        output = generate('import (\n"fmt"\n"strings"\n)\nfunc f() { throw "x" }')
        assert output.count('"fmt"') == 1
        assert output.startswith(go(
            "import (",
            '\t"fmt"',
            '\t"strings"',
            '\t"errors"',
            ")",
        ))

    def test_inserted_without_package_clause(self):
        output = generate('func f() { throw "x" }')
        assert output.startswith('import (\n\t"errors"\n\t"fmt"\n)\n')

    def test_try_alone_adds_no_imports(self):
        output = generate("package main\nfunc f() { try { a() } catch { } }")
        assert "import" not in output
