# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""Source positions shared by tokens, AST nodes and error records."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """A span in the source text.

    ``line`` and ``column`` are 1-based and point at the first character.
    ``start`` and ``end`` are absolute offsets, ``end`` exclusive.
    """

    line: int
    column: int
    start: int
    end: int

    def contains(self, other: "Position") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"
