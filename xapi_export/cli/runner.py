"""Command orchestration for the XAPI export tool."""
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from colorama import Fore, Style

from config import AppConfig, app_config
from xapi_export.api import (
    BooleanEnvelope,
    Bindings,
    CollectionEnvelope,
    InvocationPipeline,
    RequestContext,
    TokenProvider,
    XapiClient,
)
from xapi_export.definitions import DefinitionSet, DefinitionsStore
from xapi_export.exporter import EXPORTERS, JsonExporter, shape
from xapi_export.introspection import SpecFetcher, load_spec_file
from xapi_export.transformer import DatasetExpander

logger = logging.getLogger(__name__)


class ExportRunner:
    """Runs refresh / list / export commands against one definitions store."""

    def __init__(self, config: Optional[AppConfig] = None, spec_file: Optional[Path] = None):
        """Initialize runner."""
        self.config = config or app_config
        self.spec_file = Path(spec_file) if spec_file else None
        self.store = DefinitionsStore(
            Path(self.config.definitions_file),
            max_age=self.config.definitions_max_age,
            api_prefix=self.config.xapi.api_prefix,
        )

    def print_header(self, title: str):
        """Print a section header."""
        click.echo(f"\n{Fore.CYAN}{'━' * 45}")
        click.echo(f"{Fore.CYAN}{title}")
        click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    def load_spec(self) -> Dict[str, Any]:
        """Read the OpenAPI document from the local file or the server."""
        if self.spec_file:
            click.echo(f"{Fore.CYAN}Reading specification from {self.spec_file}...")
            return load_spec_file(self.spec_file)

        click.echo(f"{Fore.CYAN}Fetching specification from {self.config.xapi.base_url}...")
        return SpecFetcher(self.config.xapi).fetch()

    def definitions(self) -> DefinitionSet:
        """Current definitions, regenerated when stale."""
        return self.store.ensure_fresh(self.load_spec)

    def refresh_definitions(self) -> DefinitionSet:
        """Force regeneration of the definitions store."""
        self.print_header("Refresh Endpoint Definitions")

        definitions = self.store.refresh(self.load_spec)

        click.echo(f"{Fore.GREEN}✓ {len(definitions.descriptors)} endpoints compiled")
        click.echo(f"{Fore.YELLOW}  {len(definitions.disabled)} endpoints disabled or skipped")
        needs_override = [d.name for d in definitions.descriptors.values() if d.requires_override]
        if needs_override:
            click.echo(f"{Fore.YELLOW}  {len(needs_override)} endpoints need a manual override value:")
            for name in needs_override:
                click.echo(f"    - {name}")
        click.echo(f"{Fore.GREEN}Definitions saved to {self.store.path}")
        return definitions

    def list_endpoints(self, show_disabled: bool = False):
        """Print compiled endpoints and the inputs each one uses."""
        definitions = self.definitions()

        if show_disabled:
            self.print_header(f"Disabled Endpoints ({len(definitions.disabled)})")
            for name, reason in definitions.disabled.items():
                click.echo(f"{Fore.YELLOW}{name:50s}{Style.RESET_ALL} {reason}")
            return

        self.print_header(f"Endpoints ({len(definitions.descriptors)})")
        for name in definitions.endpoint_names():
            descriptor = definitions.descriptors[name]
            inputs = ", ".join(sorted(descriptor.visible_inputs)) or "-"
            marker = f" {Fore.YELLOW}(needs override){Style.RESET_ALL}" if descriptor.requires_override else ""
            click.echo(f"{name:50s} inputs: {inputs}{marker}")

    def export(
        self,
        endpoint: str,
        bindings: Bindings,
        fmt: str = "csv",
        output: Optional[Path] = None,
        preview: bool = True,
    ) -> Optional[Path]:
        """
        Invoke an endpoint and write the resulting table.

        Returns:
            Path of the written file, or None when there is nothing to export

        Raises:
            XapiError: Any definition, authentication or invocation failure
        """
        self.print_header(f"Export: {endpoint}")
        definitions = self.definitions()

        client = XapiClient(self.config.xapi, token_provider=TokenProvider(self.config.xapi))
        expander = DatasetExpander(self.config.primary_locale, self.config.secondary_locale)
        pipeline = InvocationPipeline(definitions, client, expander=expander)

        context = RequestContext(endpoint=endpoint, bindings=bindings)
        try:
            envelope = pipeline.invoke(endpoint, bindings, context=context)
        finally:
            self.show_notices(context.notices)

        if isinstance(envelope, BooleanEnvelope):
            return None

        if not isinstance(envelope, CollectionEnvelope):
            if preview:
                self.show_object(envelope.row)
            click.echo(f"{Fore.YELLOW}Object-style response, nothing to export as a table.")
            return None

        schema = definitions.get_schema(endpoint)
        header_list, rows = shape(envelope.rows, schema)

        if preview:
            self.show_sample(header_list, envelope.rows)

        output = Path(output) if output else self.default_output(endpoint, fmt)
        exporter = JsonExporter(endpoint=endpoint) if fmt == "json" else EXPORTERS[fmt]()
        click.echo(f"{Fore.CYAN}Writing {len(rows)} rows to {output}...")
        written = exporter.export(output, header_list, rows)
        click.echo(f"{Fore.GREEN}✅ Export saved to {written}")
        return written

    def default_output(self, endpoint: str, fmt: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9_.-]+", "_", endpoint)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return Path(self.config.output_dir) / f"{safe_name}_{timestamp}.{fmt}"

    def show_notices(self, notices: List[str]):
        for notice in notices:
            color = Fore.YELLOW if notice.startswith("Warning") else Fore.WHITE
            click.echo(f"{color}ℹ {notice}")

    def show_sample(self, header_list: List[str], rows: List[Dict[str, Any]]):
        """Print the first rows of the expanded dataset."""
        sample = rows[: self.config.sample_rows]
        click.echo(f"\n{Fore.CYAN}Sample data ({len(sample)} of {len(rows)} rows):{Style.RESET_ALL}")
        click.echo(" | ".join(h.upper() for h in header_list))
        for row in sample:
            cells = []
            for header in header_list:
                value = row.get(header)
                cells.append("N/A" if value is None else str(value))
            click.echo(" | ".join(cells))
        click.echo()

    def show_object(self, row: Dict[str, Any]):
        """Print a flat object response as a single row."""
        click.echo(f"\n{Fore.CYAN}Flat object-style response:{Style.RESET_ALL}")
        for key, value in row.items():
            click.echo(f"  {key}: {value}")
