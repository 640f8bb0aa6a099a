"""Fallback orchestration across AI providers.

Every endpoint describes its behavior as a ``FallbackPolicy``: an ordered
list of provider tiers (each with its own timeout and normalizer strictness),
an overall deadline, and whether the tiers run one after another or race.
The mock generator is the last tier unless the policy opts out of it.

Provider calls are blocking ``requests`` posts and run in worker threads.
A timeout stops *waiting* for a call; the thread itself is not interrupted
and whatever it eventually returns is dropped.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import ProviderConfigError, ProviderError, ProviderResponseError, ProviderTimeoutError
from .mock import MockGenerator
from .models import GiftRequest, GiftResponse

logger = logging.getLogger(__name__)

MOCK_SOURCE = "mock"


@dataclass(frozen=True)
class FallbackStep:
    provider: str
    timeout: float
    strict: bool = False


@dataclass(frozen=True)
class FallbackPolicy:
    name: str
    steps: Tuple[FallbackStep, ...]
    deadline: float
    race: bool = False
    use_mock: bool = True


FULL_POLICY = FallbackPolicy(
    name="full",
    steps=(FallbackStep("doubao", 15.0, strict=True), FallbackStep("openai", 10.0, strict=True)),
    deadline=30.0,
)

FAST_POLICY = FallbackPolicy(
    name="fast",
    steps=(FallbackStep("doubao", 20.0), FallbackStep("openai", 20.0)),
    deadline=20.0,
    race=True,
)

DOUBAO_ONLY_POLICY = FallbackPolicy(
    name="doubao-only",
    steps=(FallbackStep("doubao", 20.0),),
    deadline=20.0,
    use_mock=False,
)


@dataclass
class DispatchResult:
    response: GiftResponse
    source: str


def _retrieve_exception(task: "asyncio.Task") -> None:
    # Losing racers finish in the background; read their outcome so asyncio doesn't warn
    if not task.cancelled():
        task.exception()


class GiftDispatcher:
    def __init__(self, providers: Dict[str, object], mock: Optional[MockGenerator] = None):
        self.providers = providers
        self.mock = mock or MockGenerator()

    def _provider(self, name: str):
        provider = self.providers.get(name)
        if provider is None:
            raise ProviderConfigError(name, "provider is not registered")
        return provider

    async def _attempt(self, step: FallbackStep, request: GiftRequest, language: str) -> DispatchResult:
        provider = self._provider(step.provider)
        start = time.monotonic()
        logger.info("Trying %s (timeout %.1fs, strict=%s)", step.provider, step.timeout, step.strict)
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(provider.generate, request, language, step.strict),
                timeout=step.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(step.provider, f"no answer within {step.timeout}s") from e
        except ProviderError:
            raise
        except Exception as e:
            logger.exception("Unexpected error from %s", step.provider)
            raise ProviderResponseError(step.provider, f"{type(e).__name__}: {e}") from e
        logger.info("%s succeeded in %dms", step.provider, (time.monotonic() - start) * 1000)
        return DispatchResult(response, step.provider)

    async def _sequential(self, policy: FallbackPolicy, request: GiftRequest, language: str) -> DispatchResult:
        last_error: Optional[ProviderError] = None
        for step in policy.steps:
            try:
                return await self._attempt(step, request, language)
            except ProviderError as e:
                logger.warning("%s tier failed (%s): %s", step.provider, type(e).__name__, e)
                last_error = e
        if last_error is None:
            raise ProviderConfigError(policy.name, "policy has no provider steps")
        raise last_error

    async def _race(self, policy: FallbackPolicy, request: GiftRequest, language: str) -> DispatchResult:
        """Start every configured provider at once; the first to settle decides.

        A failure that settles first ends the race and the caller falls back.
        Later outcomes are read and discarded.
        """
        steps = [s for s in policy.steps if getattr(self.providers.get(s.provider), "configured", False)]
        if not steps:
            raise ProviderConfigError(policy.name, "no configured provider to race")

        tasks = {asyncio.ensure_future(self._attempt(s, request, language)): s for s in steps}
        try:
            done, _ = await asyncio.wait(tasks, timeout=policy.deadline, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                if not task.done():
                    task.add_done_callback(_retrieve_exception)
        if not done:
            raise ProviderTimeoutError(policy.name, f"no provider answered within {policy.deadline}s")

        error: Optional[BaseException] = None
        for task in done:
            exc = task.exception()
            if exc is None:
                return task.result()
            error = exc
        logger.warning("%s settled the race first with %s: %s", tasks[task].provider, type(error).__name__, error)
        raise error

    async def dispatch(self, request: GiftRequest, policy: FallbackPolicy,
                       language: Optional[str] = None) -> DispatchResult:
        """Return a response for ``request`` following ``policy``.

        With ``use_mock`` (the default) this never raises for provider
        failures: the mock generator answers instead. Otherwise the last
        provider error propagates.
        """
        lang = language or request.language
        start = time.monotonic()
        runner = self._race if policy.race else self._sequential
        try:
            result = await asyncio.wait_for(runner(policy, request, lang), timeout=policy.deadline)
        except asyncio.TimeoutError:
            error: ProviderError = ProviderTimeoutError(
                policy.name, f"overall deadline of {policy.deadline}s exceeded")
        except ProviderError as e:
            error = e
        else:
            logger.info("%s policy served by %s in %dms", policy.name, result.source,
                        (time.monotonic() - start) * 1000)
            return result

        elapsed_ms = (time.monotonic() - start) * 1000
        if not policy.use_mock:
            logger.error("%s policy failed after %dms: %s", policy.name, elapsed_ms, error)
            raise error
        logger.warning("%s policy falling back to mock after %dms (%s)", policy.name,
                       elapsed_ms, type(error).__name__)
        return DispatchResult(self.mock.generate(request, lang), MOCK_SOURCE)
