#  Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from typing import Any
from unittest import main as ut_main

from structlog import get_logger
from twisted.trial import unittest

from structshape import encode, new
from structshape.conf import StructShapeSettings, get_global_settings
from structshape.schema import Struct

logger = get_logger()
main = ut_main


class TestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.log = logger.new()
        self._settings = get_global_settings()

    def settings_with(self, **kwargs: Any) -> StructShapeSettings:
        """Return a copy of the global settings with some values replaced."""
        return self._settings.model_copy(update=kwargs)

    def encode_and_new(self, value: Any) -> tuple[Struct, Any]:
        """Encode a type and materialize a zero-valued instance from the resulting schema."""
        schema = encode(value)
        return schema, new(schema)
