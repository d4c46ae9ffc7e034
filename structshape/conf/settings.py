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

from pathlib import Path

from pydantic import Field

from structshape.utils.pydantic import BaseModel
from structshape.utils.yaml import model_from_extended_yaml


class StructShapeSettings(BaseModel):
    """Limits applied by the encoder, the decoder and the wire codec.

    Schemas may come from an untrusted sender, these keep a hostile schema from exhausting memory or the stack.
    """

    # Maximum nesting depth of structs and containers, on both directions.
    MAX_DEPTH: int = Field(default=64, gt=0)

    # Maximum number of fields in a single struct accepted by the decoder.
    MAX_FIELDS: int = Field(default=1024, gt=0)

    # Maximum length of a fixed array accepted by the decoder.
    MAX_ARRAY_COUNT: int = Field(default=65536, ge=0, le=2**32 - 1)

    # Maximum size of a byte-encoded schema.
    MAX_SCHEMA_BYTES: int = Field(default=1 << 20, gt=0)

    @classmethod
    def from_yaml(cls, *, filepath: str) -> 'StructShapeSettings':
        """Takes a filepath to a yaml file and returns a validated StructShapeSettings instance."""
        return model_from_extended_yaml(cls, filepath=filepath, custom_root=Path(__file__).parent)
