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

from abc import ABC, abstractmethod
from typing import Sequence

from ..domain.models import Document, Symbol


class SymbolServicePort(ABC):
    """Abstract interface for a document's structural outline."""

    @abstractmethod
    async def fetch_symbols(self, document: Document) -> Sequence[Symbol]:
        """Return the document's symbols (kind, range, name) in source order."""
        raise NotImplementedError
