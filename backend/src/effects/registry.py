"""Effect registry — lookup and dispatch for frame effects."""

from typing import Any, Callable

import numpy as np

EffectFn = Callable[..., tuple[Any, dict | None]]

_REGISTRY: dict[str, dict] = {}


def register(effect_id: str, fn: EffectFn, params: dict, name: str, category: str):
    """Register an effect under ``effect_id``. Re-registering replaces it."""
    _REGISTRY[effect_id] = {
        "fn": fn,
        "params": params,
        "name": name,
        "category": category,
    }


def get(effect_id: str) -> dict | None:
    return _REGISTRY.get(effect_id)


def list_all() -> list[dict]:
    """Registered effects with their param schema and defaults."""
    return [
        {
            "id": eid,
            "name": info["name"],
            "category": info["category"],
            "params": info["params"],
            "defaults": {k: v.get("default") for k, v in info["params"].items()},
        }
        for eid, info in _REGISTRY.items()
    ]


def run(
    effect_id: str,
    frame: np.ndarray,
    params: dict | None = None,
    *,
    frame_index: int = 0,
    seed: int = 0,
) -> np.ndarray:
    """Apply a registered effect to one frame and return the output frame.

    Raises:
        KeyError: If ``effect_id`` is not registered.
    """
    info = _REGISTRY.get(effect_id)
    if info is None:
        raise KeyError(f"unknown effect: {effect_id}")
    height, width = frame.shape[:2]
    output, _ = info["fn"](
        frame,
        dict(params or {}),
        None,
        frame_index=frame_index,
        seed=seed,
        resolution=(width, height),
    )
    return output


def _auto_register():
    from effects.fx import pixelsort

    for mod in [pixelsort]:
        register(
            mod.EFFECT_ID, mod.apply, mod.PARAMS, mod.EFFECT_NAME, mod.EFFECT_CATEGORY
        )


_auto_register()
