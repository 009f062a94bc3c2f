from __future__ import annotations

from typing import Callable

from harness.dispatcher import MAX_CONCURRENCY, MAX_ITERATIONS

InputFn = Callable[[str], str]


def read_int(prompt: str, low: int, high: int, label: str, input_fn: InputFn = input) -> int:
    """Ask until the operator enters an integer in [low, high]."""
    while True:
        raw = input_fn(f"{prompt}: ").strip()
        try:
            value = int(raw)
        except ValueError:
            value = None
        if value is not None and low <= value <= high:
            return value
        print(f"{label} must be in range between {low} and {high}.")


def read_uploading_params(input_fn: InputFn = input) -> tuple[int, int]:
    iterations = read_int(
        "Uploading iterations", 1, MAX_ITERATIONS, "Uploading iterations", input_fn
    )
    concurrency = read_int(
        "Uploading concurrency", 1, MAX_CONCURRENCY, "Uploading concurrency", input_fn
    )
    return iterations, concurrency


def read_stop_condition(input_fn: InputFn = input) -> bool:
    """Return True when the operator does not want another round."""
    while True:
        answer = input_fn("Another test? (y/n): ").strip().lower()
        if answer == "y":
            return False
        if answer == "n":
            return True
