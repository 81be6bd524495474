"""
Project document models for ``.shgraph`` files.

    nodes:
      - id: 3f2c...
        name: Producer
        script: |
          #!/bin/sh
          printf "hi!" > "$OUT_out"
        inputs: []
        outputs: [{name: out, kind: single}]
        position: {x: 80.0, y: 100.0}
    edges:
      - {from_node: 3f2c..., from_port: out, to_node: 9a1b..., to_port: in}

Run state (processes, exit statuses, captured output) is never part of the
document.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .Types import PipeKind


class PortDocument(BaseModel):
    name: str
    kind: PipeKind = PipeKind.SINGLE


class PositionDocument(BaseModel):
    x: float = 0
    y: float = 0


class NodeDocument(BaseModel):
    id: str
    name: str
    script: str = ""
    inputs: List[PortDocument] = Field(default_factory=list)
    outputs: List[PortDocument] = Field(default_factory=list)
    position: Optional[PositionDocument] = None


class EdgeDocument(BaseModel):
    from_node: str
    from_port: str
    to_node: str
    to_port: str


class ProjectDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: List[NodeDocument] = Field(default_factory=list)
    edges: List[EdgeDocument] = Field(default_factory=list)
