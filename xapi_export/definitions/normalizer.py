"""
Placeholder Normalizer - Rewrites template placeholders left over from compilation.

Placeholders are replaced with request binding keys (dates, queue DN), static
defaults, or the manual-override sentinel. Anything that is still not a binding
key afterwards disables the endpoint.
"""

import logging
from typing import List, Tuple

from xapi_export.errors import UnresolvedPlaceholderError

from .models import OVERRIDE_SENTINEL, DefinitionSet, EndpointDescriptor
from .template import Template

logger = logging.getLogger(__name__)

OVERRIDE = f"'{OVERRIDE_SENTINEL}'"

# (needle, replacement), applied in order to the URL and every parameter value
SUBSTITUTIONS: List[Tuple[str, str]] = [
    # dates -> zulu-aware bindings
    ("periodFrom={periodFrom}", "periodFrom={fromZulu}"),
    ("periodTo={periodTo}", "periodTo={toZulu}"),
    ("startDt={startDt}", "startDt={fromZulu}"),
    ("endDt={endDt}", "endDt={toZulu}"),
    ("startDate={startDate}", "startDate={fromZulu}"),
    ("endDate={endDate}", "endDate={toZulu}"),
    ("chartDate={chartDate}", "chartDate={fromZulu}"),
    # empty / neutral filters
    ("extension={extension}", "extension=''"),
    ("call={call}", "call=''"),
    ("search={search}", "search=''"),
    ("severity={severity}", "severity='All'"),
    # function-call pagination defaults
    ("top={top}", "top=1000"),
    ("skip={skip}", "skip=0"),
    # DN-like arguments -> queue DN binding
    ("queueDns={queueDns}", "queueDns='{queuedn}'"),
    ("queueDnStr={queueDnStr}", "queueDnStr='{queuedn}'"),
    ("ringGroupDns={ringGroupDns}", "ringGroupDns='{queuedn}'"),
    ("agentDnStr={agentDnStr}", "agentDnStr='{queuedn}'"),
    ("{dnNumber}", "'{queuedn}'"),
    ("{number}", "'{queuedn}'"),
    # report defaults
    ("waitInterval={waitInterval}", "waitInterval='0:00:0'"),
    ("answerInterval={answerInterval}", "answerInterval='0:00:0'"),
    ("hidePcalls={hidePcalls}", "hidePcalls=false"),
    ("sourceFilter={sourceFilter}", "sourceFilter=''"),
    ("destinationFilter={destinationFilter}", "destinationFilter=''"),
    ("sourceType={sourceType}", "sourceType=0"),
    ("destinationType={destinationType}", "destinationType=0"),
    ("callsType={callsType}", "callsType=0"),
    ("callTimeFilterType={callTimeFilterType}", "callTimeFilterType=0"),
    ("callTimeFilterFrom={callTimeFilterFrom}", "callTimeFilterFrom='0:00:0'"),
    ("callTimeFilterTo={callTimeFilterTo}", "callTimeFilterTo='0:00:0'"),
    ("groupNumber={groupNumber}", "groupNumber='GRP0000'"),
    ("callArea={callArea}", "callArea=0"),
    ("{groupFilter}", "'GRP0000'"),
    ("{callClass}", "0"),
    ("{participantType}", "0"),
    ("{grantPeriodDays}", "30"),
    ("{extensionFilter}", "''"),
    ("{chartBy}", "''"),
    ("{clientTimeZone}", "'Etc/GMT'"),
    ("{includeInternalCalls}", "false"),
    ("{includeQueueCalls}", "false"),
    ("{groupStr}", "''"),
    # values a human must fill in before the endpoint is usable
    ("{resellerId}", OVERRIDE),
    ("{name}", OVERRIDE),
    ("{guid}", OVERRIDE),
    ("{mac}", OVERRIDE),
    ("{fileName}", OVERRIDE),
    ("{userId}", OVERRIDE),
    ("{template}", OVERRIDE),
]


def normalize_text(text: str) -> str:
    for needle, replacement in SUBSTITUTIONS:
        text = text.replace(needle, replacement)
    return text


class PlaceholderNormalizer:
    """Second pass over compiled descriptors"""

    def normalize(self, definitions: DefinitionSet) -> DefinitionSet:
        """
        Rewrite placeholders in place and enforce the binding vocabulary

        Descriptors that still reference an unknown placeholder are moved to the
        disabled list. Running this twice gives the same result as running it once.
        """
        for name in list(definitions.descriptors):
            descriptor = definitions.descriptors[name]
            self.normalize_descriptor(descriptor)

            try:
                self.validate(descriptor)
            except UnresolvedPlaceholderError as e:
                logger.warning(f"Disabling {name}: {e.message}")
                definitions.disable(name, f"disabled: unresolved placeholder(s) {e.placeholders}")
                continue

            if descriptor.requires_override:
                logger.warning(f"{name} needs a manual value for '{OVERRIDE_SENTINEL}' before use")

        definitions.sort()
        return definitions

    @staticmethod
    def normalize_descriptor(descriptor: EndpointDescriptor) -> EndpointDescriptor:
        descriptor.url_template = normalize_text(descriptor.url_template)
        descriptor.parameters = {
            key: normalize_text(value) for key, value in descriptor.parameters.items()
        }
        return descriptor

    @staticmethod
    def validate(descriptor: EndpointDescriptor) -> None:
        """Raises UnresolvedPlaceholderError for any non-binding placeholder"""
        for text in descriptor.raw_templates():
            Template.parse(text)
