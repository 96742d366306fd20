"""Top-level interpretation of one embedded directive.

`DirectivePipeline.run` resolves URL placeholders, tokenizes the directive,
applies parameters in priority order, validates them, queries the content
store, post-processes the rows, lays them out, and renders headers, footers,
and diagnostics into a single text fragment. Side channels for the host
(scroll variables, URL variables, cache decision, cleanup hooks) are returned
alongside the text.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Mapping, Optional, Tuple

from .cleanup import CreatedLinks, LinkFlags, plan_end_resets
from .contracts import ContentStorePort, HostPort, LayoutPort, QueryResult
from .definitions import default_registry
from .diagnostics import Diagnostic, DiagnosticCode, DiagnosticLog
from .guard import RecursionGuard, TransclusionLoopError
from .layout import SimpleListLayout
from .parameters import ParameterRegistry, ParameterSet, table_row_keys
from .postprocess import process
from .query_spec import build_query_specification
from .render import (
    NO_RESULTS_VARIABLES,
    RenderContext,
    assemble,
    format_elapsed,
    render,
    select_templates,
    substitute,
)
from .settings import Settings
from .titles import CurrentDocument
from .tokenizer import resolve_url_arguments, tokenize, url_variables
from .types import UrlArguments
from .validator import validate

logger = logging.getLogger(__name__)

GET_URL_ARGS = "geturlargs"


@dataclass(frozen=True)
class CacheDecision:
    """Whether the host may cache the rendered fragment, and for how long."""

    cacheable: bool
    duration: Optional[int] = None


@dataclass(frozen=True)
class DirectiveOutput:
    """Rendered fragment plus the side channels consumed by the host."""

    text: str
    scroll_variables: Mapping[str, str] = field(default_factory=dict)
    url_variables: Mapping[str, str] = field(default_factory=dict)
    cache: Optional[CacheDecision] = None
    cleanup_hooks: Tuple[str, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()


class DirectivePipeline:
    """Interprets directives against one content store.

    Args:
        store: Content store executing query specifications.
        layout: Layout renderer for processed rows.
        settings: Read-only limits and switches.
        registry: Parameter registry; the default table when omitted.
        guard: Shared recursion guard for nested invocations.
        clock: Monotonic clock used for `%DPLTIME%`.
        now: Wall clock used for the `%DPLTIME%` timestamp.
        rng: Random source for `randomcount` sampling.
    """

    def __init__(
        self,
        store: ContentStorePort,
        *,
        layout: Optional[LayoutPort] = None,
        settings: Optional[Settings] = None,
        registry: Optional[ParameterRegistry] = None,
        guard: Optional[RecursionGuard] = None,
        clock: Callable[[], float] = time.perf_counter,
        now: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.layout = layout or SimpleListLayout()
        self.settings = settings or Settings()
        self.registry = registry or default_registry()
        self.guard = guard or RecursionGuard()
        self._clock = clock
        self._now = now
        self._rng = rng

    def run(
        self,
        raw_text: str,
        host: HostPort,
        url_args: Optional[UrlArguments] = None,
        *,
        is_parser_tag: bool = True,
        created_links: Optional[CreatedLinks] = None,
    ) -> DirectiveOutput:
        """Interpret one directive occurrence embedded in the host document."""

        started = self._clock()
        url_args = url_args or {}
        log = DiagnosticLog()
        current = host.current_document()
        title = current.ref.prefixed(self.settings.namespaces)

        if self.settings.run_from_protected_pages_only and not current.protected:
            log.add(DiagnosticCode.PROTECTED_PAGE_REQUIRED, title)
            return self._diagnostics_only(log, self.settings.default_debug_level)

        try:
            with self.guard.enter(current.ref):
                return self._interpret(
                    raw_text,
                    host,
                    url_args,
                    current,
                    log,
                    started=started,
                    is_parser_tag=is_parser_tag,
                    created_links=created_links if created_links is not None else CreatedLinks(),
                )
        except TransclusionLoopError as exc:
            if exc.ref != current.ref:
                raise
            log.add(DiagnosticCode.TRANSCLUSION_LOOP_DETECTED, title)
            return self._diagnostics_only(log, self.settings.default_debug_level)

    def parse_parameters(
        self, raw_text: str, url_args: UrlArguments, log: DiagnosticLog
    ) -> ParameterSet:
        """Resolve placeholders, tokenize, and apply every value in priority order."""

        text = resolve_url_arguments(raw_text, url_args)
        directive = tokenize(
            text, self.registry, log, functional_richness=self.settings.functional_richness
        )
        parameters = self.registry.new_parameter_set(self.settings)
        for name, values in self.registry.sort_by_priority(directive.entries):
            for value in values:
                if not self.registry.apply(name, value, parameters):
                    log.add(DiagnosticCode.PARAMETER_REJECTED_VALUE, name, value)

        offset = (url_args.get("DPL_offset") or "").strip()
        if offset.isdigit():
            parameters.set("offset", int(offset))
        return parameters

    def _interpret(
        self,
        raw_text: str,
        host: HostPort,
        url_args: UrlArguments,
        current: CurrentDocument,
        log: DiagnosticLog,
        *,
        started: float,
        is_parser_tag: bool,
        created_links: CreatedLinks,
    ) -> DirectiveOutput:
        variables = url_variables(url_args)
        parameters = self.parse_parameters(raw_text, url_args, log)

        exec_and_exit = parameters.get("execandexit")
        if exec_and_exit is not None:
            text = "" if exec_and_exit == GET_URL_ARGS else exec_and_exit
            return DirectiveOutput(text, url_variables=variables, diagnostics=log.diagnostics)

        labels = parameters.get("seclabels")
        if labels:
            parameters.set("tablerow", table_row_keys(parameters.get("tablerow", ()), labels))

        debug_level = parameters.get("debug", self.settings.default_debug_level)

        if validate(parameters, self.settings, self.store, log) is not None:
            return self._diagnostics_only(log, debug_level, variables)

        spec = build_query_specification(parameters, self.settings)
        logger.debug("Query specification: %s", spec)
        try:
            result: QueryResult = self.store.select(spec)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Content store query failed")
            log.add(DiagnosticCode.SQL_BUILD_ERROR, exc)
            return self._no_results(log, debug_level, variables, header="", body="", footer="")

        body = self.settings.body_marker
        if not result.rows:
            header, footer = substitute(select_templates(parameters, 0), NO_RESULTS_VARIABLES)
            return self._no_results(
                log, debug_level, variables, header=header, body=body, footer=footer
            )

        rows = process(result.rows, parameters, current, self._rng)
        laid_out = self.layout.render(rows, parameters)
        found_rows = laid_out.row_count
        if spec.count_total and result.total is not None:
            found_rows = result.total

        context = RenderContext.from_rows(
            rows,
            total_pages=found_rows,
            pages=laid_out.row_count,
            dpl_time=format_elapsed(self._clock() - started, self._now()),
            scroll_dir=url_args.get("DPL_scrollDir") or "",
            count=parameters.get("count"),
        )
        text = render(
            select_templates(parameters, found_rows),
            context,
            body + laid_out.text,
            log.messages(debug_level),
            debug_level=debug_level,
        )

        cache = self._cache_decision(parameters, host)
        hooks = plan_end_resets(
            parameters.get("reset", LinkFlags()),
            parameters.get("eliminate", LinkFlags()),
            is_parser_tag=is_parser_tag,
            output_text=text,
            created=created_links,
            namespaces=self.settings.namespaces,
        )
        for hook in hooks:
            host.register_post_render_cleanup(hook)

        return DirectiveOutput(
            text,
            scroll_variables=context.scroll_variables(),
            url_variables=variables,
            cache=cache,
            cleanup_hooks=hooks,
            diagnostics=log.diagnostics,
        )

    def _cache_decision(self, parameters: ParameterSet, host: HostPort) -> CacheDecision:
        if parameters.get("allowcachedresults"):
            duration = parameters.get("cacheperiod") or self.settings.default_cache_period
            host.set_cache_duration(duration)
            return CacheDecision(True, duration)
        host.disable_caching()
        return CacheDecision(False)

    @staticmethod
    def _diagnostics_only(
        log: DiagnosticLog, debug_level: int, variables: Optional[Mapping[str, str]] = None
    ) -> DirectiveOutput:
        return DirectiveOutput(
            log.render(debug_level),
            url_variables=variables or {},
            diagnostics=log.diagnostics,
        )

    @staticmethod
    def _no_results(
        log: DiagnosticLog,
        debug_level: int,
        variables: Mapping[str, str],
        *,
        header: str,
        body: str,
        footer: str,
    ) -> DirectiveOutput:
        if not header and not footer:
            log.add(DiagnosticCode.NO_RESULTS)
        return DirectiveOutput(
            assemble(log.messages(debug_level), header, body, footer),
            url_variables=variables,
            diagnostics=log.diagnostics,
        )
