from typing import Any

from aether.main.models import GeneralError


def get_responses(response_codes: list[int]) -> dict[int | str, dict[str, Any]]:
    return {code: {"model": GeneralError} for code in response_codes}
