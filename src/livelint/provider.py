# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Wire document events to tool runs, diagnostics and fixes.

The provider is the only component that knows about all the others: it
debounces document events through one :class:`ThrottledDelayer` per document,
runs the analysis tool, maps its output and keeps the
:class:`DiagnosticStore` in step with the document lifecycle.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from .config import LinterSettings, ProcessMode, RunTrigger
from .delayer import ThrottledDelayer
from .errors import (
    ExecutableNotFoundError,
    FixError,
    LiveLintError,
    OutputParseError,
    ProcessError,
    StaleFixError,
)
from .fixes import FixAction, apply_fix, code_actions
from .logging import LintLogger
from .mapper import parse_lines, parse_output
from .models import Diagnostic
from .process import Invocation, ProcessOutput, run_invocation
from .store import DiagnosticStore
from .workspace import ConsoleNotifier, Notifier, Subscription, TextDocument, Workspace

Runner = Callable[[Invocation], Awaitable[ProcessOutput]]


@dataclass(slots=True)
class ExecutableHealth:
    """Sticky record of an executable that could not be started.

    Attributes:
        executable_not_found: ``True`` once a spawn failed; linting is suspended.
        failed_executable: Executable path that failed.
    """

    executable_not_found: bool = False
    failed_executable: str | None = None

    def mark_failed(self, executable: str) -> bool:
        """Record a spawn failure.

        Returns:
            bool: ``True`` when this is the first failure since the last reset,
            meaning the user has not been warned yet.
        """

        first = not self.executable_not_found
        self.executable_not_found = True
        self.failed_executable = executable
        return first

    def reconsider(self, executable: str) -> None:
        """Clear the failure when the configured path no longer matches the failed one."""

        if self.executable_not_found and executable != self.failed_executable:
            self.executable_not_found = False
            self.failed_executable = None


@dataclass(frozen=True, slots=True)
class LintResult:
    """Outcome of one lint pass.

    Attributes:
        uri: Document the pass ran for.
        diagnostics: Diagnostics produced; empty when the pass failed.
        error: Process or parse error met during the pass.
        stored: ``True`` when the diagnostics were written to the store.
        returncode: Exit status of the tool, when it ran.
    """

    uri: str
    diagnostics: tuple[Diagnostic, ...] = ()
    error: LiveLintError | None = None
    stored: bool = False
    returncode: int | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when the pass completed without error."""

        return self.error is None


@dataclass(slots=True)
class _ProviderSubscriptions:
    workspace: list[Subscription] = field(default_factory=list)
    document: Subscription | None = None

    def dispose(self) -> None:
        for subscription in self.workspace:
            subscription.dispose()
        self.workspace.clear()
        self.dispose_document()

    def dispose_document(self) -> None:
        if self.document is not None:
            self.document.dispose()
            self.document = None


class LintingProvider:
    """Live linting for the documents of one workspace."""

    def __init__(
        self,
        *,
        runner: Runner = run_invocation,
        store: DiagnosticStore | None = None,
        logger: LintLogger | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Create an inactive provider.

        Args:
            runner: Coroutine function executing an invocation.
            store: Diagnostic store to publish into.
            logger: Level-gated log; the level follows the settings.
            notifier: Message sink; defaults to the workspace notifier on activation.
        """

        self.settings = LinterSettings()
        self.health = ExecutableHealth()
        self.store = store if store is not None else DiagnosticStore()
        self.logger = logger if logger is not None else LintLogger()
        self._runner = runner
        self._notifier = notifier
        self._workspace: Workspace | None = None
        self._delayers: dict[str, ThrottledDelayer[LintResult]] = {}
        self._subscriptions = _ProviderSubscriptions()

    @property
    def notifier(self) -> Notifier:
        """Return the sink used for user-visible messages."""

        if self._notifier is None:
            self._notifier = self._workspace.notifier if self._workspace is not None else ConsoleNotifier()
        return self._notifier

    @property
    def workspace(self) -> Workspace | None:
        """Return the workspace the provider is attached to."""

        return self._workspace

    def activate(self, workspace: Workspace) -> None:
        """Attach to ``workspace`` and lint every document already open.

        Must be called from a running event loop.
        """

        self._workspace = workspace
        self._subscriptions.workspace.extend(
            (
                workspace.did_change_configuration.subscribe(self.load_configuration),
                workspace.did_open.subscribe(self.trigger_lint),
                workspace.did_close.subscribe(self.on_close),
            )
        )
        self.load_configuration(workspace.settings)

    def load_configuration(self, settings: LinterSettings | None = None) -> None:
        """Install ``settings`` and re-lint every open document.

        Args:
            settings: New settings; the workspace settings when omitted.
        """

        if settings is None:
            settings = self._workspace.settings if self._workspace is not None else LinterSettings()
        self.settings = settings
        self.logger.set_level(settings.log_level)
        self.health.reconsider(settings.executable_path)
        for delayer in self._delayers.values():
            delayer.delay = settings.delay_seconds

        workspace = self._workspace
        if workspace is None:
            return
        self._subscriptions.dispose_document()
        if settings.run is RunTrigger.ON_TYPE:
            self._subscriptions.document = workspace.did_change.subscribe(self.trigger_lint)
        elif settings.run is RunTrigger.ON_SAVE:
            self._subscriptions.document = workspace.did_save.subscribe(self.trigger_lint)
        for document in workspace.text_documents:
            self.trigger_lint(document)

    def trigger_lint(self, document: TextDocument) -> asyncio.Future[LintResult] | None:
        """Schedule a debounced lint pass for ``document``.

        Returns:
            asyncio.Future[LintResult] | None: Future of the pass servicing this
            trigger, or ``None`` when nothing was scheduled.
        """

        settings = self.settings
        if document.language_id != settings.language_id or self.health.executable_not_found:
            return None
        if settings.run is RunTrigger.NEVER:
            self.store.delete(document.uri)
            return None
        delayer = self._delayers.get(document.uri)
        if delayer is None:
            delayer = ThrottledDelayer(settings.delay_seconds)
            self._delayers[document.uri] = delayer
        return delayer.trigger(lambda: self._do_lint(document, delayer))

    async def lint_document(self, document: TextDocument) -> LintResult | None:
        """Trigger a pass for ``document`` and wait for its outcome."""

        future = self.trigger_lint(document)
        if future is None:
            return None
        return await future

    async def wait_idle(self) -> None:
        """Wait until no lint pass is scheduled or in flight."""

        for delayer in list(self._delayers.values()):
            await delayer.wait_idle()

    async def _do_lint(self, document: TextDocument, delayer: ThrottledDelayer[LintResult]) -> LintResult:
        settings = self.settings
        uri = document.uri
        cwd = self._workspace.root if self._workspace is not None else None
        if settings.run is RunTrigger.ON_SAVE:
            invocation = settings.build_invocation(file_path=document.file_name, cwd=cwd)
        else:
            invocation = settings.build_invocation(text=document.get_text(), cwd=cwd)
        self.logger.log(f'Starting "{invocation.command_line()}"')

        try:
            output = await self._runner(invocation)
        except ProcessError as exc:
            self._report_spawn_failure(document, exc)
            return LintResult(uri=uri, error=exc)

        if output.returncode != 0:
            self.logger.log(f"{invocation.executable} exited with status {output.returncode}")
        if output.stderr:
            self.logger.log(output.stderr.rstrip())

        try:
            if settings.process is ProcessMode.LINE:
                diagnostics = parse_lines(output.lines, ignore_severity=settings.ignore_severity)
            else:
                diagnostics = parse_output(output.text, ignore_severity=settings.ignore_severity)
        except OutputParseError as exc:
            message = f"Failed to parse {invocation.executable} output for {document.file_name}: {exc}"
            self.logger.error(message)
            self.notifier.show_error(message)
            return LintResult(uri=uri, error=exc, returncode=output.returncode)

        found = tuple(diagnostics)
        if self._delayers.get(uri) is not delayer:
            self.logger.log(f"Discarding results for closed document {uri}")
            return LintResult(uri=uri, diagnostics=found, returncode=output.returncode)
        self.store.set(uri, found)
        self.logger.info(f"{len(found)} diagnostics for {document.file_name}")
        return LintResult(uri=uri, diagnostics=found, stored=True, returncode=output.returncode)

    def _report_spawn_failure(self, document: TextDocument, exc: ProcessError) -> None:
        if not self.health.mark_failed(exc.executable):
            return
        if isinstance(exc, ExecutableNotFoundError):
            message = (
                f"Cannot lint {document.file_name}. The executable '{exc.executable}' was not found. "
                "Use the 'executablePath' setting to configure its location."
            )
        else:
            message = f"Failed to run '{exc.executable}': {exc}"
        self.logger.warn(message)
        self.notifier.show_warning(message)

    def on_close(self, document: TextDocument) -> None:
        """Forget ``document``: drop its diagnostics and its delayer."""

        self.store.delete(document.uri)
        delayer = self._delayers.pop(document.uri, None)
        if delayer is not None:
            delayer.dispose()

    def provide_code_actions(
        self,
        document: TextDocument,
        diagnostics: Iterable[Diagnostic] | None = None,
    ) -> list[FixAction]:
        """Return the fixes offered for ``document``, last finding first.

        Args:
            document: Document the user is looking at.
            diagnostics: Diagnostics in context; the stored ones when omitted.

        Returns:
            list[FixAction]: One action per fixable suggestion.
        """

        if diagnostics is None:
            diagnostics = self.store.get(document.uri)
        actions = code_actions(document.uri, diagnostics)
        self.logger.log(f"Found {len(actions)} code actions for {document.file_name}")
        return actions

    def run_code_action(self, action: FixAction) -> bool:
        """Apply ``action`` if the text it targets is unchanged.

        Returns:
            bool: ``True`` when the edit was applied.
        """

        workspace = self._workspace
        document = workspace.get(action.resource_id) if workspace is not None else None
        if workspace is None or document is None:
            message = f"Cannot apply fix: {action.resource_id} is not open"
            self.logger.warn(message)
            self.notifier.show_error(message)
            return False
        try:
            apply_fix(document, action, workspace)
        except StaleFixError as exc:
            self.logger.warn(str(exc))
            self.notifier.show_error(str(exc))
            return False
        except FixError as exc:
            self.logger.error(str(exc))
            self.notifier.show_error(str(exc))
            return False
        self.logger.log(f"Applied fix '{action.title}' to {document.file_name}")
        return True

    def dispose(self) -> None:
        """Detach from the workspace and drop all state."""

        self._subscriptions.dispose()
        delayers, self._delayers = self._delayers, {}
        for delayer in delayers.values():
            delayer.dispose()
        self.store.clear()
        self._workspace = None


__all__ = ["ExecutableHealth", "LintResult", "LintingProvider", "Runner"]
