import pytest

from games.expression_parser import ExpressionParser


class TestEvaluate:
    """Evaluation under the game's integer rules."""

    def setup_method(self):
        self.parser = ExpressionParser()

    def test_valid_expression(self):
        assert self.parser.evaluate("(100 - 3) * 6") == (True, 582, None)

    def test_alternative_operator_symbols(self):
        assert self.parser.evaluate("3 x 4 ÷ 2") == (True, 6, None)

    @pytest.mark.parametrize("expression,error", [
        ("7 / 2", "not a whole number"),
        ("3 - 5", "not positive"),
        ("4 - 4", "not positive"),
        ("4 / 0", "Division by zero"),
        ("-3 + 5", "Signs"),
        ("2 ** 3", "Operator not allowed"),
        ("(2 +", "Invalid syntax"),
        ("", "Empty expression"),
        ("abc", "Empty expression"),
    ])
    def test_rejected(self, expression, error):
        success, result, message = self.parser.evaluate(expression)

        assert not success
        assert result is None
        assert error in message


class TestParseAndValidate:
    """Tile usage checks on top of evaluation."""

    def setup_method(self):
        self.parser = ExpressionParser()

    def test_valid(self):
        result = self.parser.parse_and_validate("(25 + 50) * 3", [25, 50, 75, 100, 3, 6])

        assert result == {
            'valid': True,
            'result': 225,
            'error': None,
            'numbers_used': [25, 50, 3],
        }

    def test_number_not_available(self):
        result = self.parser.parse_and_validate("8 + 2", [25, 2])

        assert not result['valid']
        assert "not available" in result['error']

    def test_number_used_too_often(self):
        result = self.parser.parse_and_validate("25 + 25", [25, 50])

        assert not result['valid']
        assert "more times than available" in result['error']

    def test_duplicate_tiles_can_both_be_used(self):
        result = self.parser.parse_and_validate("10 * 10", [10, 10, 3])
        assert result['result'] == 100

    def test_arithmetic_error_is_reported(self):
        result = self.parser.parse_and_validate("3 - 25", [25, 3])

        assert not result['valid']
        assert result['numbers_used'] == [3, 25]
        assert "not positive" in result['error']
