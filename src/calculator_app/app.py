"""
Flask Calculator Application

Client side of the calculator:
- Input state machine assembling the equation string from button presses
- Evaluation through the arithmetic evaluator
- History kept in sync with the history service (local fallback when offline)
"""

import logging
import string
from typing import Optional, Tuple

from flask import Flask, jsonify, request

from .evaluator import ERROR_MARKER, ExpressionError, calculate
from .history import HistorySync

logger = logging.getLogger(__name__)

OPERATORS = ("+", "-", "*", "/", "%")
DIGIT_KEYS = tuple(string.digits) + (".",)


class Calculator:
    """Calculator class managing display state and button events."""

    def __init__(self):
        """Initialize calculator with default state."""
        self.reset()

    def reset(self):
        """Reset calculator to initial state (AC)."""
        self.current_input = "0"
        self.equation = ""
        self.should_reset = False
        self.last_action = "clear"

    @property
    def error(self) -> bool:
        return self.current_input == ERROR_MARKER

    def input_digit(self, digit: str):
        """
        Add a digit or decimal point to current input.

        Args:
            digit: Single character, 0-9 or '.'
        """
        if digit not in DIGIT_KEYS:
            raise ValueError(f"Not a digit key: {digit!r}")

        if self.error:
            self.reset()

        if digit == ".":
            self._input_dot()
        elif self.current_input == "0" or self.should_reset:
            self.current_input = digit
            self.should_reset = False
        else:
            self.current_input += digit

        self.last_action = "digit"

    def _input_dot(self):
        if self.should_reset:
            self.current_input = "0."
            self.should_reset = False
        elif "." not in self.current_input:
            self.current_input += "."

    def set_operation(self, op: str):
        """
        Append the current operand and operator to the pending equation.

        Args:
            op: One of '+', '-', '*', '/', '%'
        """
        if self.error:
            self.reset()

        if self.last_action == "op":
            # Pressing a second operator swaps the pending one
            self.equation = self.equation[:-3] + f" {op} "
        else:
            self.equation += f"{self.current_input} {op} "

        self.should_reset = True
        self.last_action = "op"

    def compute(self) -> Optional[Tuple[str, str]]:
        """
        Evaluate the full equation (pending prefix plus current input).

        Returns:
            (equation, result) on success, None when the expression is invalid
        """
        if self.error:
            self.reset()
            return None

        full_equation = self.equation + self.current_input
        try:
            result = calculate(full_equation)
        except ExpressionError as e:
            logger.debug("Evaluation failed for %r: %s", full_equation, e)
            self.current_input = ERROR_MARKER
            self.equation = ""
            self.should_reset = True
            self.last_action = "equals"
            return None

        self.current_input = result
        self.equation = ""
        self.should_reset = True
        self.last_action = "equals"
        return full_equation, result

    def backspace(self):
        """Remove the last character from current input."""
        if self.error:
            self.reset()
            return

        if len(self.current_input) > 1:
            self.current_input = self.current_input[:-1]
        else:
            self.current_input = "0"

        self.last_action = "digit"

    def recall(self, value: str):
        """Put a history result into the current input."""
        self.current_input = value
        self.last_action = "recall"

    def state(self) -> dict:
        return {
            "current_input": self.current_input,
            "equation": self.equation,
            "should_reset": self.should_reset,
            "error": self.error,
        }


def create_app(calculator: Optional[Calculator] = None, history: Optional[HistorySync] = None) -> Flask:
    """
    Build the calculator Flask app.

    Args:
        calculator: Calculator state machine (a fresh one if omitted)
        history: History synchronizer (talks to API_URL if omitted)
    """
    app = Flask(__name__)
    calculator = calculator or Calculator()
    history = history or HistorySync()

    def snapshot():
        return jsonify(
            {
                **calculator.state(),
                "history": [entry.to_dict() for entry in history.entries],
            }
        )

    @app.route("/api/calculate", methods=["POST"])
    async def handle_action():
        """
        Handle a button press.

        Expected JSON payload:
            {
                "action": "digit|dot|op|equals|clear|backspace",
                "value": "..."  // digit or operator
            }

        Returns:
            JSON with the display state and the visible history
        """
        data = request.get_json(silent=True)

        if not data or not isinstance(data, dict):
            return jsonify({"error": "No data provided"}), 400

        action = data.get("action", "")
        value = data.get("value")

        if action == "digit":
            if not (isinstance(value, str) and len(value) == 1 and value in string.digits):
                return jsonify({"error": f"Invalid digit: {value}"}), 400
            calculator.input_digit(value)
        elif action == "dot":
            calculator.input_digit(".")
        elif action == "op":
            if value not in OPERATORS:
                return jsonify({"error": f"Invalid operator: {value}"}), 400
            calculator.set_operation(value)
        elif action == "equals":
            outcome = calculator.compute()
            if outcome:
                await history.save(*outcome)
        elif action == "clear":
            calculator.reset()
        elif action == "backspace":
            calculator.backspace()
        else:
            return jsonify({"error": f"Unknown action: {action}"}), 400

        return snapshot()

    @app.route("/api/reset", methods=["POST"])
    def reset():
        """Reset calculator to initial state."""
        calculator.reset()
        return snapshot()

    @app.route("/api/recall", methods=["POST"])
    def recall():
        """Load a history entry's result into the display."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        entry = history.find(str(data.get("id", "")))

        if not entry:
            return jsonify({"error": "History entry not found"}), 404

        calculator.recall(entry.res)
        return snapshot()

    @app.route("/api/recent", methods=["GET"])
    async def recent():
        """Refresh and return the visible history."""
        await history.load()
        return snapshot()

    @app.route("/api/recent", methods=["DELETE"])
    async def clear_recent():
        if not await history.clear():
            return jsonify({"error": "Could not clear history"}), 502
        return snapshot()

    @app.route("/api/recent/<entry_id>", methods=["DELETE"])
    async def delete_recent(entry_id: str):
        if not await history.delete(entry_id):
            return jsonify({"error": f"Could not delete {entry_id}"}), 502
        return snapshot()

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5173, debug=True)
