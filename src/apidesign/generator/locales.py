"""Locale fan-out: one document pair per configured locale."""

import logging
from concurrent.futures import ThreadPoolExecutor

from pydantic import BaseModel, ConfigDict

from apidesign.design.base import DesignGraph
from apidesign.design.errors import ConfigurationError, StructuralError
from apidesign.generator.assembler import assemble
from apidesign.generator.encode import to_json, to_yaml

logger = logging.getLogger(__name__)

BASENAME = "openapi"


class DocumentPair(BaseModel):
    """The JSON and YAML renditions of one locale's document."""

    locale: str
    basename: str
    json_text: str
    yaml_text: str

    @property
    def files(self) -> dict[str, str]:
        return {
            f"{self.basename}.json": self.json_text,
            f"{self.basename}.yaml": self.yaml_text,
        }


class GenerationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    documents: dict[str, DocumentPair] = {}
    errors: dict[str, StructuralError] = {}

    @property
    def ok(self) -> bool:
        return not self.errors


def output_name(locale: str, index: int) -> str:
    """Base file name for the locale at ``index``; the default locale is bare."""
    return BASENAME if index == 0 else f"{BASENAME}_{locale}"


class LocaleDriver:
    """Runs one independent assembly pass per locale on a thread pool."""

    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers

    def run(self, locales: list[str], graph: DesignGraph) -> GenerationResult:
        if not locales:
            raise ConfigurationError("no locales configured")
        locales = list(dict.fromkeys(locales))
        default = locales[0]

        result = GenerationResult()
        workers = self.max_workers or len(locales)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._generate, graph, locale, index, default)
                for index, locale in enumerate(locales)
            ]
            for locale, future in zip(locales, futures):
                try:
                    pair = future.result()
                except StructuralError as e:
                    logger.error("locale %s: %s", locale, e)
                    result.errors[locale] = e
                    continue
                if pair is None:
                    logger.warning("locale %s: no HTTP services, no document produced", locale)
                    continue
                result.documents[locale] = pair
        return result

    def _generate(self, graph: DesignGraph, locale: str, index: int, default: str) -> DocumentPair | None:
        logger.debug("assembling %s document (%d)", locale, index)
        document = assemble(graph, locale, default)
        if document is None:
            return None
        return DocumentPair(
            locale=locale,
            basename=output_name(locale, index),
            json_text=to_json(document),
            yaml_text=to_yaml(document),
        )


def run(locales: list[str], graph: DesignGraph, max_workers: int | None = None) -> GenerationResult:
    return LocaleDriver(max_workers=max_workers).run(locales, graph)
