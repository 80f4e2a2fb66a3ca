"""
Tests for the calculator facade.
"""

import pytest
from pydantic import ValidationError

from xparser import (
    CalculationRequest,
    CalculationResult,
    Calculator,
    CalculatorConfig,
    NullHandling,
    calculate,
    create_registry,
    tree_to_string,
)


class TestCalculate:
    """Tests for successful calculations."""

    def test_evaluates_expression(self):
        result = Calculator().calculate("3+4*ABS(-2)")
        assert result.success is True
        assert result.value == 11.0
        assert result.error is None
        assert result.expression == "3+4*ABS(-2)"

    def test_ignores_whitespace(self):
        assert Calculator().calculate(" 2 + 3 * 4 ").value == 14.0

    def test_variables(self):
        result = Calculator().calculate("A*B+C", {"A": 2, "B": 3, "C": 1})
        assert result.value == 7.0

    def test_delivers_result_to_callback(self):
        received: list[CalculationResult] = []
        result = Calculator().calculate("1+1", callback=received.append)
        assert received == [result]

    def test_module_level_calculate(self):
        assert calculate("(2+3)*4").value == 20.0

    def test_international_format(self):
        result = Calculator().calculate("1.000,5+0,5", international_format=True)
        assert result.value == 1001.0

    def test_international_format_from_config(self):
        calculator = Calculator(CalculatorConfig(international_format=True))
        assert calculator.calculate("2,5*2").value == 5.0

    def test_null_policy_override(self):
        calculator = Calculator(CalculatorConfig(null_policy=NullHandling.THROW_ON_NULL))
        result = calculator.calculate("A+B", {"A": 2, "B": None}, null_policy="drop_null")
        assert result.value == 2.0

    def test_calculate_request(self):
        request = CalculationRequest(
            expression="A-B",
            variables={"A": None, "B": 5},
            null_policy=NullHandling.DROP_NULL,
        )
        assert Calculator().calculate_request(request).value == 5.0

    def test_custom_registry(self):
        registry = create_registry()
        registry.register("DOUBLE", True, lambda values: values[0] * 2, max_args=1)
        calculator = Calculator(registry=registry)
        assert calculator.calculate("DOUBLE(4)+1").value == 9.0

    def test_registry_is_copied_before_freezing(self):
        registry = create_registry()
        calculator = Calculator(registry=registry)
        assert calculator.registry.frozen
        assert not registry.frozen
        registry.register("TRIPLE", True, lambda values: values[0] * 3, max_args=1)
        assert "TRIPLE" not in calculator.registry
        assert calculator.calculate("TRIPLE(2)").success is False

    def test_compile_exposes_tree(self):
        tree = Calculator().compile("1+A")
        assert tree_to_string(tree) == "Operator: +\n  Number: 1.0\n  Variable: A"


class TestFailures:
    """Tests for failed calculations."""

    def test_syntax_error(self):
        received: list[CalculationResult] = []
        result = Calculator().calculate("3+", callback=received.append)
        assert result.success is False
        assert result.value is None
        assert result.error_type == "SyntaxError"
        assert received == [result]

    def test_lex_error(self):
        result = Calculator().calculate("3#4")
        assert result.error_type == "LexError"
        assert result.position == 1
        assert "^" in result.error_context

    def test_null_value_error(self):
        result = Calculator().calculate("A+B", {"A": 2, "B": None}, null_policy="throw_error")
        assert result.error_type == "NullValueError"

    def test_unresolved_variable(self):
        result = Calculator().calculate("A+B", {"A": 2})
        assert result.error_type == "UnresolvedVariableError"
        assert "B" in result.error

    def test_division_by_zero(self):
        result = Calculator().calculate("1/0")
        assert result.error_type == "OperationError"

    def test_deep_nesting(self):
        result = Calculator().calculate("(" * 1000 + "1" + ")" * 1000)
        assert result.success is False
        assert result.error_type == "LimitExceededError"

    def test_configured_limits(self):
        calculator = Calculator(CalculatorConfig(max_nesting_depth=1))
        assert calculator.calculate("(1)").success is True
        assert calculator.calculate("((1))").error_type == "LimitExceededError"

    @pytest.mark.parametrize("value", ["abc", "2", True])
    def test_non_numeric_variables_are_rejected(self, value):
        with pytest.raises(ValidationError):
            Calculator().calculate("A", {"A": value})

    def test_integer_variables_are_accepted(self):
        assert Calculator().calculate("A*2", {"A": 3}).value == 6.0

    def test_everything_dropped(self):
        result = Calculator().calculate("A", {"A": None}, null_policy="drop_null")
        assert result.success is False
        assert result.value is None
        assert result.error_type == "NullValueError"

    def test_nesting_configuration_is_capped(self):
        with pytest.raises(ValidationError):
            CalculatorConfig(max_nesting_depth=5000)
        calculator = Calculator(CalculatorConfig(max_nesting_depth=128))
        result = calculator.calculate("(" * 2000 + "1" + ")" * 2000)
        assert result.error_type == "LimitExceededError"

    def test_callback_errors_propagate(self):
        def failing(result: CalculationResult) -> None:
            raise RuntimeError("callback failed")

        with pytest.raises(RuntimeError):
            Calculator().calculate("1", callback=failing)


class TestFromEnv:
    def test_reads_environment(self):
        calculator = Calculator.from_env(environ={"XPARSER_NULL_POLICY": "drop_null"})
        assert calculator.config.null_policy is NullHandling.DROP_NULL
        assert calculator.calculate("A+B", {"A": 1, "B": None}).value == 1.0
