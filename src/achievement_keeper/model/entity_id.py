# SPDX-License-Identifier: MIT

from typing import TypeAlias

EntityId: TypeAlias = str
RecordId: TypeAlias = str
SourceKey: TypeAlias = str

AUTO_SOURCE: SourceKey = "auto"
