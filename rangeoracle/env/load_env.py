import os
from typing import Callable, Dict, Mapping

from dotenv import dotenv_values

from .env import Env, PrimaryType


def _typed_values(
    source: Mapping[str, str | None],
    types: Dict[str, Callable[[str], PrimaryType]],
) -> Dict[str, PrimaryType]:
    return {
        name: types[name](value)
        for name, value in source.items()
        if name in types and value
    }


def load_env(
    env_type: type[Env] = Env,
    env_file: str | None = ".env",
    override: Env | None = None,
) -> Env:
    """
    Build an ``Env`` from, in increasing precedence: the process
    environment, ``env_file`` when it exists, and the fields explicitly
    set on ``override``.
    """
    types = env_type.types_map()

    values = _typed_values(os.environ, types)

    if env_file and os.path.exists(env_file):
        values.update(
            _typed_values(dotenv_values(dotenv_path=env_file), types)
        )

    if override is not None:
        values.update(override.model_dump(exclude_unset=True))

    return env_type(**values)
