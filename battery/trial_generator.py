import random
from typing import Dict, List, Sequence

from battery.errors import ConfigError
from battery.stimuli import CONGRUENT, INCONGRUENT, LEFT, RIGHT

FLANKER_CELLS: tuple = (
    {"target_dir": LEFT, "congruency": CONGRUENT},
    {"target_dir": LEFT, "congruency": INCONGRUENT},
    {"target_dir": RIGHT, "congruency": CONGRUENT},
    {"target_dir": RIGHT, "congruency": INCONGRUENT},
)


def generate_flanker_plan(
    n_trials: int,
    rng: random.Random,
    cells: Sequence[Dict[str, str]] = FLANKER_CELLS,
) -> List[Dict[str, str]]:
    """
    Генерирует сбалансированный план блока Flanker.

    - каждая ячейка встречается n // len(cells) раз
    - остаток n % len(cells) добираем случайными ячейками (равновероятно, с повторами)
    - весь список перемешиваем
    """
    if n_trials < 0:
        raise ConfigError(f"n_trials must be >= 0, got {n_trials}")
    if not cells:
        raise ConfigError("cells must not be empty")

    reps, remainder = divmod(n_trials, len(cells))

    plan: List[Dict[str, str]] = []
    for _ in range(reps):
        for cell in cells:
            plan.append(dict(cell))

    for _ in range(remainder):
        plan.append(dict(rng.choice(cells)))

    rng.shuffle(plan)
    return plan
