import asyncio
import sys

from rangeoracle.env import Env, load_env
from rangeoracle.orchestration import run_oracle


def main():
    env = load_env(Env)
    outcome = asyncio.run(run_oracle(env))

    print(outcome.summary())
    sys.exit(0 if outcome.passed else 1)


if __name__ == "__main__":
    main()
