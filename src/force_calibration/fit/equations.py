"""
Candidate calibration curves.

Each curve maps a raw sensor reading x to a force y and is registered in a
fixed, ordered catalogue. Registration order is significant: when two models
score the same R², the one registered first wins.

CATALOGUE:
- Linear:                 y = a·x + b
- Quadratic:              y = a·x² + b·x + c
- Cubic:                  y = a·x³ + b·x² + c·x + d
- 4th Degree Polynomial:  y = a·x⁴ + b·x³ + c·x² + d·x + e
- Exponential:            y = a·exp(b·x)
- Logarithmic:            y = a·ln(x) + b          (x > 0)
- Power:                  y = a·x^b                (x > 0)
- Sinusoidal:             y = a·sin(b·x + c) + d
- Cosinusoidal:           y = a·cos(b·x + c) + d

All functions follow the scipy.optimize.curve_fit convention f(x, *params)
and are vectorised over a NumPy array x.
"""

import inspect
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import ConfigurationError


def _function_arity(function: Callable) -> int:
    """Number of fit parameters, i.e. positional arguments after x."""
    params = list(inspect.signature(function).parameters.values())
    return len(params) - 1


@dataclass(frozen=True)
class ModelSpec:
    """
    Definition of one candidate functional form.

    Immutable; the initial guess length must match the function's parameter
    count or construction fails with ConfigurationError.
    """

    name: str
    function: Callable[..., np.ndarray] = field(compare=False, repr=False)
    initial_params: Tuple[float, ...]
    equation: str = ""
    positive_x: bool = False  # Undefined for x <= 0 (log, fractional powers)
    param_names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        initial = tuple(float(p) for p in self.initial_params)
        object.__setattr__(self, "initial_params", initial)

        arity = _function_arity(self.function)
        if len(initial) != arity:
            raise ConfigurationError(
                f"Model '{self.name}' takes {arity} parameters but "
                f"{len(initial)} initial values were given"
            )

        if not self.param_names:
            names = tuple(
                p.name for p in list(inspect.signature(self.function).parameters.values())[1:]
            )
            object.__setattr__(self, "param_names", names)
        elif len(self.param_names) != arity:
            raise ConfigurationError(
                f"Model '{self.name}' has {arity} parameters but "
                f"{len(self.param_names)} parameter names"
            )

    @property
    def n_params(self) -> int:
        return len(self.initial_params)

    def __call__(self, x, *params) -> np.ndarray:
        return self.function(np.asarray(x, dtype=float), *params)

    def with_initial_params(self, initial_params: Sequence[float]) -> "ModelSpec":
        """Copy of this spec starting from a different initial guess."""
        return replace(self, initial_params=tuple(initial_params))


# Model registry, insertion ordered
_MODEL_REGISTRY: Dict[str, ModelSpec] = {}


def register_model(
    name: str,
    initial_params: Sequence[float],
    equation: str = "",
    positive_x: bool = False,
):
    """
    Decorator to register a curve function in the catalogue.

    Args:
        name: Unique display name of the model
        initial_params: Starting point for the least-squares search
        equation: Human-readable form of the curve
        positive_x: True if the curve is only defined for x > 0

    Example:
        @register_model("Linear", [1, 1], "y = a·x + b")
        def linear(x, a, b):
            return a * x + b
    """

    def decorator(function: Callable) -> Callable:
        if name in _MODEL_REGISTRY:
            raise ConfigurationError(f"Model '{name}' is already registered")
        _MODEL_REGISTRY[name] = ModelSpec(
            name=name,
            function=function,
            initial_params=tuple(initial_params),
            equation=equation,
            positive_x=positive_x,
        )
        return function

    return decorator


@register_model("Linear", [1, 1], "y = a·x + b")
def linear(x, a, b):
    return a * x + b


@register_model("Quadratic", [1, 1, 1], "y = a·x² + b·x + c")
def quadratic(x, a, b, c):
    return a * x**2 + b * x + c


@register_model("Cubic", [1, 1, 1, 1], "y = a·x³ + b·x² + c·x + d")
def cubic(x, a, b, c, d):
    return a * x**3 + b * x**2 + c * x + d


@register_model(
    "4th Degree Polynomial", [1, 1, 1, 1, 1], "y = a·x⁴ + b·x³ + c·x² + d·x + e"
)
def quartic(x, a, b, c, d, e):
    return a * x**4 + b * x**3 + c * x**2 + d * x + e


@register_model("Exponential", [1, 0.001], "y = a·exp(b·x)")
def exponential(x, a, b):
    return a * np.exp(b * x)


@register_model("Logarithmic", [1, 1], "y = a·ln(x) + b", positive_x=True)
def logarithmic(x, a, b):
    return a * np.log(x) + b


@register_model("Power", [1, 1], "y = a·x^b", positive_x=True)
def power(x, a, b):
    return a * np.power(x, b)


@register_model("Sinusoidal", [1, 1, 1, 1], "y = a·sin(b·x + c) + d")
def sinusoidal(x, a, b, c, d):
    return a * np.sin(b * x + c) + d


@register_model("Cosinusoidal", [1, 1, 1, 1], "y = a·cos(b·x + c) + d")
def cosinusoidal(x, a, b, c, d):
    return a * np.cos(b * x + c) + d


def get_model(name: str) -> ModelSpec:
    """
    Look up a registered model by name.

    Raises:
        ConfigurationError: If no model with that name is registered
    """
    if name not in _MODEL_REGISTRY:
        available = ", ".join(_MODEL_REGISTRY.keys())
        raise ConfigurationError(f"Unknown model '{name}'. Available: {available}")
    return _MODEL_REGISTRY[name]


def list_models() -> List[str]:
    """Return registered model names in catalogue order."""
    return list(_MODEL_REGISTRY.keys())


def default_registry(
    names: Optional[Iterable[str]] = None,
    initial_guesses: Optional[Dict[str, Sequence[float]]] = None,
) -> Tuple[ModelSpec, ...]:
    """
    Build the ordered catalogue used for a calibration run.

    Args:
        names: Optional subset of model names to keep. Catalogue order is
            preserved regardless of the order given here.
        initial_guesses: Optional per-model replacement initial guesses

    Returns:
        Tuple of ModelSpec in catalogue order
    """
    selected = list(_MODEL_REGISTRY.keys())
    if names is not None:
        wanted = set(names)
        for name in wanted:
            get_model(name)
        selected = [name for name in selected if name in wanted]

    guesses = initial_guesses or {}
    for name in guesses:
        get_model(name)

    specs = []
    for name in selected:
        spec = _MODEL_REGISTRY[name]
        if name in guesses:
            spec = spec.with_initial_params(guesses[name])
        specs.append(spec)
    return tuple(specs)
