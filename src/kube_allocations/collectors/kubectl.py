# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Thin kubectl subprocess wrapper."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class KubectlError(Exception):
    """Error from a kubectl command."""


@dataclass
class Kubectl:
    """How to invoke kubectl: binary, kubeconfig context and timeout."""

    binary: str = "kubectl"
    context: str | None = None
    timeout: int = 30

    def command(self, args: list[str]) -> list[str]:
        cmd = [self.binary]
        if self.context:
            cmd += ["--context", self.context]
        return cmd + args

    def run(self, args: list[str]) -> str:
        """Run a kubectl command and return stdout."""
        cmd = self.command(args)
        logger.debug("%s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise KubectlError(f"{self.binary} not found on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise KubectlError(f"{' '.join(cmd)}: timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise KubectlError(f"{' '.join(cmd)}: {e.stderr.strip()}") from e
        return result.stdout

    def get(self, model: type[M], args: list[str]) -> M:
        """Run a kubectl command printing JSON and validate it against ``model``."""
        stdout = self.run(args)
        try:
            return model.model_validate_json(stdout)
        except ValidationError as e:
            raise KubectlError(
                f"{' '.join(self.command(args))}: unexpected output: {e}"
            ) from e
