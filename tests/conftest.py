from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from ruamel.yaml import YAML

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


SAMPLE_DOCUMENT = """
openapi: 3.1.0
info:
  title: Search
  version: 1.0.0
paths:
  /search:
    post:
      operationId: search
      requestBody:
        content:
          application/json:
            schema:
              $ref: '#/components/schemas/SearchRequest'
      responses:
        '200':
          description: ok
          content:
            application/json:
              schema:
                type: object
                additionalProperties: true
components:
  schemas:
    SortOrder:
      type: string
      enum: [asc, ASC, desc]
    SortWrapper:
      allOf:
        - $ref: '#/components/schemas/SortOrder'
    SearchRequest:
      type: object
      properties:
        sort:
          type: object
          minProperties: 1
          maxProperties: 1
          additionalProperties:
            $ref: '#/components/schemas/SortOrder'
        secondary_sort:
          type: object
          minProperties: 1
          maxProperties: 1
          additionalProperties:
            $ref: '#/components/schemas/SortOrder'
        status:
          oneOf:
            - type: string
              const: open
            - type: string
              const: closed
        cursor:
          type: 'null'
        query:
          $ref: '#/components/schemas/QueryContainer'
    QueryContainer:
      type: object
      properties:
        term:
          type: object
          minProperties: 1
          maxProperties: 1
          additionalProperties:
            $ref: '#/components/schemas/TermQuery'
        bool:
          oneOf:
            - type: object
              properties:
                must:
                  type: string
            - type: object
              properties:
                should:
                  type: string
    TermQuery:
      type: object
      properties:
        value:
          type: string
"""


@pytest.fixture
def sample_document() -> dict[str, Any]:
    return YAML(typ="safe").load(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "project"
    project_dir.mkdir(parents=True)

    (project_dir / "oasproto.yaml").write_text(
        """
version: v1
document: openapi.yaml

rewrite:
  inline_single_map_contexts: [QueryContainer]
  inject_field_on_inline: true

output:
  format: yaml
""".strip()
        + "\n",
        encoding="utf-8",
    )

    (project_dir / "openapi.yaml").write_text(SAMPLE_DOCUMENT.strip() + "\n", encoding="utf-8")

    return project_dir
