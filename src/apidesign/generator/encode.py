"""JSON and YAML encoders for assembled documents."""

import json

import yaml

from apidesign.design.errors import EncodingBug
from apidesign.generator.document import Document, to_dict


def to_json(document: Document) -> str:
    try:
        return json.dumps(to_dict(document), indent=2, ensure_ascii=False) + "\n"
    except (TypeError, ValueError) as e:
        raise EncodingBug(f"openapi: {e}") from e


def to_yaml(document: Document) -> str:
    try:
        return yaml.safe_dump(to_dict(document), sort_keys=False, allow_unicode=True)
    except yaml.YAMLError as e:
        raise EncodingBug(f"openapi: {e}") from e
