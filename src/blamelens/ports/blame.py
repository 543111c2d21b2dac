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

from ..domain.models import LineRecord


class BlameServicePort(ABC):
    """Abstract interface for per-line revision metadata."""

    @abstractmethod
    async def fetch_line_records(self, file_path: str) -> Sequence[LineRecord]:
        """
        Return one LineRecord per current line of `file_path`, ordered by
        current line index.

        Implementations raise when the file has no revision history
        (e.g. untracked); callers treat that as "nothing resolvable".
        """
        raise NotImplementedError
