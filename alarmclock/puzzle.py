"""Arithmetic puzzle that gates dismissing a ringing alarm."""

from __future__ import annotations

import random

from .models import PuzzleChallenge

OPERAND_MIN = 10
OPERAND_MAX = 50


class PuzzleGate:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate(self) -> PuzzleChallenge:
        a = self._rng.randint(OPERAND_MIN, OPERAND_MAX)
        b = self._rng.randint(OPERAND_MIN, OPERAND_MAX)
        if self._rng.randint(0, 1) == 0:
            return PuzzleChallenge(operand_a=a, operand_b=b, operator="+", expected_answer=a + b)

        # Subtraction never goes negative
        if a < b:
            a, b = b, a
        return PuzzleChallenge(operand_a=a, operand_b=b, operator="-", expected_answer=a - b)

    @staticmethod
    def check(challenge: PuzzleChallenge, submitted: str | int) -> bool:
        if isinstance(submitted, bool):
            return False
        if isinstance(submitted, int):
            return submitted == challenge.expected_answer
        try:
            return int(submitted.strip()) == challenge.expected_answer
        except ValueError:
            return False
