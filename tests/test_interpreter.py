"""
Tests for the tree-walking interpreter.
"""

import pytest
import textwrap

from monkey import tokenize, parse, run, evaluate, Interpreter, SourceSpan, SourceLocation
from monkey.ast import Expression
from monkey.runtime import (
    Environment, Integer, Boolean, String, Array, Hash, Function, Error,
    TRUE, FALSE, NULL,
)


def run_source(source: str, env: Environment = None):
    return run(textwrap.dedent(source), env)


def assert_error(result, message):
    assert isinstance(result, Error), f"expected Error, got {result!r}"
    assert result.message == message


class TestLiterals:
    """Test literal evaluation."""

    def test_integer(self):
        result = run_source("5")
        assert isinstance(result, Integer)
        assert result.value == 5

    def test_booleans_are_singletons(self):
        assert run_source("true") is TRUE
        assert run_source("false") is FALSE

    def test_string(self):
        assert run_source('"Hello World!"').value == "Hello World!"

    def test_array(self):
        result = run_source("[1, 2 * 2, 3 + 3]")
        assert isinstance(result, Array)
        assert [e.value for e in result.elements] == [1, 4, 6]

    def test_hash(self):
        result = run_source('''
            let two = "two";
            {"one": 10 - 9, two: 1 + 1, "thr" + "ee": 6 / 2, 4: 4, true: 5, false: 6}
        ''')
        assert isinstance(result, Hash)
        expected = {
            String("one").hash_key(): 1,
            String("two").hash_key(): 2,
            String("three").hash_key(): 3,
            Integer(4).hash_key(): 4,
            TRUE.hash_key(): 5,
            FALSE.hash_key(): 6,
        }
        assert {k: p.value.value for k, p in result.pairs.items()} == expected

    def test_duplicate_hash_keys_overwrite(self):
        result = run_source('{"a": 1, "a": 2}')
        assert len(result.pairs) == 1
        assert result.inspect() == "{a: 2}"

    def test_template(self):
        result = run_source('let name = "Ada"; let n = 3; `{name} has {n} items`')
        assert result.value == "Ada has 3 items"

    def test_template_renders_inspect(self):
        result = run_source("let xs = [1, true]; `xs = {xs}`")
        assert result.value == "xs = [1, true]"

    def test_empty_program(self):
        assert run_source("") is NULL


class TestPrefixOperators:
    """Test ! and - prefix operators."""

    @pytest.mark.parametrize("source, expected", [
        ("!true", False),
        ("!false", True),
        ("!!true", True),
        ("!5", False),
        ("!0", True),
        ("!-3", True),
        ("!!5", True),
    ])
    def test_bang(self, source, expected):
        assert run_source(source).value is expected

    def test_minus(self):
        assert run_source("-5").value == -5
        assert run_source("--5").value == 5

    def test_bang_on_string(self):
        assert_error(run_source('!"x"'), "Not implemented ! for STRING")

    def test_minus_on_boolean(self):
        assert_error(run_source("-true"), "Not implemented - for BOOLEAN")


class TestInfixOperators:
    """Test operator dispatch by operand types."""

    @pytest.mark.parametrize("source, expected", [
        ("5 + 5 + 5 + 5 - 10", 10),
        ("2 * 2 * 2 * 2 * 2", 32),
        ("-50 + 100 + -50", 0),
        ("5 * 2 + 10", 20),
        ("5 + 2 * 10", 25),
        ("50 / 2 * 2 + 10", 60),
        ("2 * (5 + 10)", 30),
        ("3 * (3 * 3) + 10", 37),
        ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
        ("7 % 3", 1),
        ("7 / 2", 3),
        ("-7 / 2", -3),
        ("-7 % 3", -1),
        ("7 % -3", 1),
    ])
    def test_integer_arithmetic(self, source, expected):
        assert run_source(source).value == expected

    def test_integer_overflow_wraps(self):
        assert run_source("9223372036854775807 + 1").value == -(2 ** 63)
        assert run_source("-9223372036854775807 - 2").value == 2 ** 63 - 1

    @pytest.mark.parametrize("source, expected", [
        ("1 < 2", True),
        ("1 > 2", False),
        ("1 <= 1", True),
        ("2 >= 3", False),
        ("1 == 1", True),
        ("1 != 1", False),
        ("true == true", True),
        ("true != false", True),
        ("true & false", False),
        ("true & true", True),
        ("false | true", True),
        ("false | false", False),
        ("(1 < 2) == true", True),
        ('"a" == "a"', True),
        ('"a" != "b"', True),
    ])
    def test_comparisons_and_logic(self, source, expected):
        result = run_source(source)
        assert result is (TRUE if expected else FALSE)

    def test_division_by_zero(self):
        assert_error(run_source("1 / 0"), "division by zero")

    def test_modulo_by_zero(self):
        assert_error(run_source("1 % 0"), "modulo by zero")

    def test_string_concatenation(self):
        assert run_source('"ab" + "cd"').value == "abcd"

    def test_string_removal(self):
        """Subtracting a string removes every occurrence."""
        assert run_source('"abcabc" - "abc"').value == ""
        assert run_source('"abcXabc" - "abc"').value == "X"
        assert run_source('"banana" - "a"').value == "bnn"

    def test_string_integer_mix(self):
        assert run_source('"x" + 1').value == "x1"
        assert run_source('1 + "x"').value == "1x"
        assert run_source('2 * "x"').value == "xx"
        assert run_source('"ab" * 3').value == "ababab"
        assert run_source('"ab" * 0').value == ""

    def test_string_repeat_equals(self):
        assert run_source('2 * "x" == "xx"') is TRUE

    def test_string_repeat_too_large(self):
        result = run_source('"x" * 9223372036854775807')
        assert_error(result, "string repetition too large: 9223372036854775807 characters")

    def test_string_repeat_negative_is_empty(self):
        assert run_source('"ab" * -2').value == ""

    def test_identity_fallback(self):
        """Other pairs compare by identity."""
        assert run_source("null == null") is TRUE
        assert run_source("[1] == [1]") is FALSE
        assert run_source("let a = [1]; a == a") is TRUE
        assert run_source("1 != true") is TRUE

    @pytest.mark.parametrize("source, message", [
        ("5 + true", "Operation + between INTEGER and BOOLEAN not implemented!"),
        ("true + false", "Operation + between BOOLEAN and BOOLEAN not implemented!"),
        ('"a" * "b"', "Operation * between STRING and STRING not implemented!"),
        ('"a" - 1', "Operation - between STRING and INTEGER not implemented!"),
        ('1 == "1"', "Operation == between INTEGER and STRING not implemented!"),
        ("1 & 2", "Operation & between INTEGER and INTEGER not implemented!"),
        ("[1] + [2]", "Operation + between ARRAY and ARRAY not implemented!"),
    ])
    def test_unsupported_pairs(self, source, message):
        assert_error(run_source(source), message)


class TestConditionals:
    """Test if expressions and truthiness."""

    @pytest.mark.parametrize("n", [-5, -1, 0, 1, 2, 100])
    def test_integer_truthiness(self, n):
        source = f"let n = {n}; if (n) {{ \"A\" }} else {{ \"B\" }}"
        assert run_source(source).value == ("A" if n > 0 else "B")

    def test_boolean_condition(self):
        assert run_source("if (true) { 10 }").value == 10
        assert run_source("if (1 > 2) { 10 } else { 20 }").value == 20

    def test_false_without_alternative(self):
        assert run_source("if (false) { 10 }") is NULL
        assert run_source("if (0) { 10 }") is NULL

    def test_other_condition_types_yield_null(self):
        assert run_source('if ("yes") { 10 } else { 20 }') is NULL
        assert run_source("if ([1]) { 10 }") is NULL

    def test_condition_error_propagates(self):
        assert_error(run_source("if (missing) { 1 }"), "identifier not found: missing")


class TestStatements:
    """Test let, return and statement sequencing."""

    def test_let_bindings(self):
        assert run_source("let a = 5; let b = a; let c = a + b + 5; c").value == 15

    def test_let_yields_value(self):
        assert run_source("let a = 5").value == 5

    @pytest.mark.parametrize("source, expected", [
        ("return 10;", 10),
        ("return 10; 9;", 10),
        ("return 2 * 5; 9;", 10),
        ("9; return 2 * 5; 9;", 10),
    ])
    def test_return(self, source, expected):
        assert run_source(source).value == expected

    def test_nested_block_return(self):
        result = run_source('''
            if (10 > 1) {
                if (10 > 1) {
                    return 10;
                }
                return 1;
            }
        ''')
        assert result.value == 10

    def test_blocks_share_scope(self):
        """Blocks do not open a new scope."""
        assert run_source("if (true) { let inner = 3 }; inner").value == 3

    def test_error_short_circuit(self, capsys):
        """An error stops the program before later statements run."""
        result = run_source('5 + true; echo("never"); 5;')
        assert_error(result, "Operation + between INTEGER and BOOLEAN not implemented!")
        assert capsys.readouterr().out == ""

    def test_error_inside_block(self):
        result = run_source('''
            if (10 > 1) {
                true + false;
                return 1;
            }
        ''')
        assert_error(result, "Operation + between BOOLEAN and BOOLEAN not implemented!")

    def test_error_inside_array(self):
        assert_error(run_source("[1, nope, 3]"), "identifier not found: nope")

    def test_error_inside_let_is_not_bound(self):
        env = Environment()
        run_source("let x = nope", env)
        assert env.lookup("x") is None

    def test_return_inside_array_leaves_function(self):
        result = run_source("let f = fn() { [if (true) { return 1 }, 2]; 99 }; f()")
        assert result.value == 1

    def test_return_inside_array_at_top_level(self):
        assert run_source("[if (true) { return 1 }, 2]; 3").value == 1

    def test_return_inside_argument_leaves_function(self):
        result = run_source('''
            let g = fn(a) { a };
            let f = fn() { g(if (true) { return 1 }); 2 };
            f()
        ''')
        assert result.value == 1

    def test_return_inside_operand_leaves_function(self):
        assert run_source("fn() { 1 + if (true) { return 2 } }()").value == 2
        assert run_source("fn() { -if (true) { return 3 } }()").value == 3

    @pytest.mark.parametrize("source, expected", [
        ("fn() { let x = if (true) { return 4 }; 0 }()", 4),
        ('fn() { {"k": if (true) { return 5 }}; 0 }()', 5),
        ("fn() { {if (true) { return 6 }: 1}; 0 }()", 6),
        ("fn() { [1][if (true) { return 7 }]; 0 }()", 7),
        ("fn() { if (if (true) { return 8 }) { 0 } }()", 8),
    ])
    def test_return_inside_nested_expressions(self, source, expected):
        assert run_source(source).value == expected

    def test_return_inside_macro_argument(self):
        result = run_source('''
            let m = macro(a: ident) { a };
            let f = fn() { m(if (true) { return "out" }); "in" };
            f()
        ''')
        assert result.value == "out"


class TestIdentifiers:
    """Test name resolution order."""

    def test_unknown_identifier(self):
        assert_error(run_source("foobar"), "identifier not found: foobar")

    def test_builtin_fallback(self):
        assert run_source('len("four")').value == 4

    def test_user_binding_shadows_builtin(self):
        assert run_source("let len = fn(x) { 42 }; len([1])").value == 42

    def test_null_identifier(self):
        assert run_source("null") is NULL

    def test_builtin_value(self):
        assert run_source("len").inspect() == "<builtin len>"


class TestFunctions:
    """Test function values and the call protocol."""

    def test_function_object(self):
        result = run_source("fn(x) { x + 2; };")
        assert isinstance(result, Function)
        assert [p.name for p in result.parameters] == ["x"]
        assert str(result.body) == "{ (x + 2) }"
        assert result.inspect() == "<fn(x)>"

    @pytest.mark.parametrize("source, expected", [
        ("let identity = fn(x) { x; }; identity(5);", 5),
        ("let identity = fn(x) { return x; }; identity(5);", 5),
        ("let double = fn(x) { x * 2; }; double(5);", 10),
        ("let add = fn(x, y) { x + y; }; add(5, 5);", 10),
        ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
        ("fn(x) { x; }(5)", 5),
    ])
    def test_calls(self, source, expected):
        assert run_source(source).value == expected

    def test_extra_arguments_ignored(self):
        assert run_source("fn(x) { x }(5, 6, 7)").value == 5

    def test_missing_arguments(self):
        result = run_source("let add = fn(a, b, c) { a }; add(1)")
        assert_error(result, "function <fn(a, b, c)> is missing 2 parameters")

    def test_argument_error_propagates(self):
        assert_error(run_source("fn(x) { x }(nope)"), "identifier not found: nope")

    def test_extra_argument_error_propagates(self):
        """Every argument is evaluated, including ignored extras."""
        assert_error(run_source("fn(x) { x }(1, nope)"), "identifier not found: nope")

    def test_return_does_not_escape_function(self):
        result = run_source("let f = fn() { return 1; }; f(); 2")
        assert result.value == 2

    def test_empty_body_is_null(self):
        assert run_source("fn() {}()") is NULL

    def test_not_callable(self):
        assert_error(run_source("5(1)"), "INTEGER callable not supported yet")
        assert_error(run_source('"f"()'), "STRING callable not supported yet")

    def test_parameters_do_not_leak(self):
        env = Environment()
        run_source("let f = fn(secret) { secret }; f(1)", env)
        assert env.lookup("secret") is None

    def test_recursion(self):
        result = run_source('''
            let fib = fn(n) {
                if (n < 2) { return n; }
                fib(n - 1) + fib(n - 2)
            };
            fib(15)
        ''')
        assert result.value == 610

    def test_higher_order(self):
        result = run_source('''
            let map = fn(arr, f) {
                let iter = fn(arr, acc) {
                    if (len(arr) == 0) { acc } else { iter(tail(arr), push(acc, f(head(arr)))) }
                };
                iter(arr, []);
            };
            map([1, 2, 3], fn(x) { x * x })
        ''')
        assert result.inspect() == "[1, 4, 9]"


class TestClosures:
    """Test closure capture."""

    def test_adder(self):
        result = run_source('''
            let newAdder = fn(x) { fn(y) { x + y } };
            let addTwo = newAdder(2);
            addTwo(3);
        ''')
        assert result.value == 5

    def test_closures_are_independent(self):
        result = run_source('''
            let f = fn(x) { fn(y) { x + y } };
            let add2 = f(2);
            let add10 = f(10);
            [add2(1), add10(1)]
        ''')
        assert result.inspect() == "[3, 11]"

    def test_closure_sees_later_binding(self):
        """A closure observes bindings added to its defining scope later."""
        result = run_source('''
            let show = fn() { later };
            let later = 7;
            show()
        ''')
        assert result.value == 7

    def test_closure_sees_rebinding(self):
        result = run_source('''
            let x = 1;
            let get = fn() { x };
            let x = 2;
            get()
        ''')
        assert result.value == 2

    def test_call_site_bindings_invisible(self):
        """Free variables resolve in the defining scope, not the caller's."""
        result = run_source('''
            let f = fn() { hidden };
            let g = fn() { let hidden = 1; f() };
            g()
        ''')
        assert_error(result, "identifier not found: hidden")

    def test_counter_style_recursion(self):
        result = run_source('''
            let countdown = fn(n) { if (n > 0) { countdown(n - 1) } else { "done" } };
            countdown(30)
        ''')
        assert result.value == "done"


class TestIndexing:
    """Test array, string and hash indexing."""

    @pytest.mark.parametrize("source, expected", [
        ("[1, 2, 3][0]", 1),
        ("[1, 2, 3][2]", 3),
        ("let i = 0; [1][i];", 1),
        ("[1, 2, 3][1 + 1];", 3),
        ("let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];", 6),
    ])
    def test_array_index(self, source, expected):
        assert run_source(source).value == expected

    @pytest.mark.parametrize("source", ["[1, 2, 3][3]", "[1, 2, 3][-1]", "[][0]"])
    def test_array_out_of_range(self, source):
        assert run_source(source) is NULL

    def test_string_index(self):
        assert run_source('"hello"[1]').value == "e"
        assert run_source('"hello"[5]') is NULL
        assert run_source('"hello"[-1]') is NULL

    @pytest.mark.parametrize("source, expected", [
        ('{1: "a"}[1]', "a"),
        ('{true: "b"}[true]', "b"),
        ('{"x": "c"}["x"]', "c"),
        ('let key = "x"; {"x": "c"}[key]', "c"),
    ])
    def test_hash_index(self, source, expected):
        assert run_source(source).value == expected

    def test_hash_missing_key(self):
        assert run_source('{"foo": 5}["bar"]') is NULL
        assert run_source("{}[0]") is NULL

    def test_unusable_hash_key(self):
        assert_error(run_source("{fn(x) { x }: 1}"), "unusable as hash key: FUNCTION")

    def test_unusable_hash_index(self):
        assert_error(run_source("{}[fn(x) { x }]"), "indexing by FUNCTION is not yet supported")

    def test_array_indexed_by_string(self):
        assert_error(run_source('[1]["0"]'), "indexing by STRING is not yet supported")

    def test_index_unsupported_collection(self):
        assert_error(run_source("5[0]"), "indexing not supported for INTEGER yet")


class TestGenericVisit:
    """Test handling of nodes the evaluator has no case for."""

    def test_unknown_node(self):
        span = SourceSpan(SourceLocation(1, 1, 0), SourceLocation(1, 1, 0))

        class Mystery(Expression):
            pass

        assert_error(Interpreter().evaluate(Mystery(span)), "Not implemented eval for Mystery!")


class TestRoundTrip:
    """Re-evaluating the rendering of a scalar gives an equal value."""

    @pytest.mark.parametrize("source", ["0", "42", "-17", "9223372036854775807", "true", "false"])
    def test_integer_and_boolean(self, source):
        first = run_source(source)
        second = run_source(first.inspect())
        assert type(second) is type(first)
        assert second.value == first.value

    @pytest.mark.parametrize("text", ["", "plain", 'with "quotes"', "back\\slash", "tab\tnew\nline"])
    def test_string_via_raw(self, text):
        env = Environment()
        env.bind("s", run_source(f"raw({_quote(text)})"))
        assert run_source("eval(s)", env).value == text


class TestApi:
    """Test the evaluate() entry point."""

    def test_evaluate_program(self):
        program = parse(tokenize("1 + 2"))
        assert evaluate(program).value == 3

    def test_persistent_environment(self):
        env = Environment()
        run_source("let a = 1;", env)
        run_source("let b = a + 1;", env)
        assert run_source("a + b", env).value == 3


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return '"' + escaped.replace("\t", "\\t").replace("\n", "\\n") + '"'
