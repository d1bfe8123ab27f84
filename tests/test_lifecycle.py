import asyncio

import pytest

from tailwind_ls.acquisition import AcquisitionFailure, StyleConfig, TailwindData
from tailwind_ls.lifecycle import CompletionLifecycle, LifecycleState
from tailwind_ls.registry import ProviderRegistry

OLD = {"text-red": "color: red", "hover": {"text-red": "color: red"}}
NEW = {"text-blue": "color: blue", "focus": {"text-blue": "color: blue"}}


def _data(class_names, separator=":"):
    return TailwindData(config=StyleConfig(separator=separator, screens={}), class_names=class_names)


class FakeAcquirer:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _labels(registry: ProviderRegistry, source: str, language: str = "javascript") -> set:
    return {item.label for item in registry.complete(language, source, 0, len(source))}


@pytest.mark.asyncio
async def test_start_installs_all_contexts():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(_data(OLD)), registry)

    state = await lifecycle.start()

    assert state is LifecycleState.LOADED
    assert len(registry.active) == 3
    assert {reg.context.name for reg in registry.active} == {"tw-template", "css-apply", "class-attribute"}
    assert _labels(registry, "tw`hover:") == {"text-red"}


@pytest.mark.asyncio
async def test_start_failure_leaves_nothing_installed():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(AcquisitionFailure("No workspace is open")), registry)

    state = await lifecycle.start()

    assert state is LifecycleState.UNLOADED
    assert registry.active == []
    assert lifecycle.index is None
    assert registry.complete("javascript", "tw`", 0, 3) == []


@pytest.mark.asyncio
async def test_unsupported_separator_disables_completion():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(_data(OLD), _data(NEW, separator="_")), registry)
    await lifecycle.start()

    state = await lifecycle.reload()

    assert state is LifecycleState.UNLOADED
    assert registry.active == []


@pytest.mark.asyncio
async def test_reload_replaces_previous_providers():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(_data(OLD), _data(NEW)), registry)
    await lifecycle.start()
    old_registrations = lifecycle.registrations

    await lifecycle.reload()

    assert all(reg.disposed for reg in old_registrations)
    assert len(registry.active) == 3
    assert _labels(registry, "tw`focus:") == {"text-blue"}
    assert "text-red" not in _labels(registry, "tw`")


@pytest.mark.asyncio
async def test_reload_failure_disposes_providers():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(_data(OLD), AcquisitionFailure("config removed")), registry)
    await lifecycle.start()

    state = await lifecycle.reload()

    assert state is LifecycleState.UNLOADED
    assert registry.active == []


@pytest.mark.asyncio
async def test_dispose_is_idempotent():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(_data(OLD)), registry)
    lifecycle.dispose()
    await lifecycle.start()
    registrations = lifecycle.registrations

    lifecycle.dispose()
    lifecycle.dispose()
    for reg in registrations:
        reg.dispose()

    assert registry.active == []
    assert lifecycle.state is LifecycleState.UNLOADED


@pytest.mark.asyncio
async def test_superseded_reload_result_is_discarded():
    registry = ProviderRegistry()
    release = asyncio.Event()

    async def acquire():
        if not release.is_set():
            await release.wait()
            return _data(OLD)
        return _data(NEW)

    lifecycle = CompletionLifecycle(acquire, registry)
    slow = asyncio.create_task(lifecycle.reload())
    await asyncio.sleep(0)

    release.set()
    await lifecycle.reload()
    await slow

    assert len(registry.active) == 3
    assert _labels(registry, "tw`focus:") == {"text-blue"}


@pytest.mark.asyncio
async def test_trigger_characters_select_providers():
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(_data(OLD)), registry)
    await lifecycle.start()
    source = "a { @apply ."

    assert registry.complete("css", source, 0, len(source), trigger_character="`") == []
    items = registry.complete("css", source, 0, len(source), trigger_character=".")
    assert {item.insert_text for item in items} == {".text-red", ".hover:"}
    assert registry.complete("html", source, 0, len(source), trigger_character=".") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("separator", ["", None, 5, "_"])
async def test_explicit_non_default_separator_installs_nothing(separator):
    payload = {"config": {"options": {"separator": separator}}, "classNames": OLD}
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(TailwindData.from_payload(payload)), registry)

    state = await lifecycle.start()

    assert state is LifecycleState.UNLOADED
    assert registry.active == []


@pytest.mark.asyncio
async def test_missing_separator_defaults_to_colon():
    payload = {"config": {"options": {}}, "classNames": OLD}
    registry = ProviderRegistry()
    lifecycle = CompletionLifecycle(FakeAcquirer(TailwindData.from_payload(payload)), registry)

    assert await lifecycle.start() is LifecycleState.LOADED
    assert len(registry.active) == 3


@pytest.mark.asyncio
async def test_superseded_reload_failure_keeps_newer_providers():
    registry = ProviderRegistry()
    release = asyncio.Event()

    async def acquire():
        if not release.is_set():
            await release.wait()
            raise AcquisitionFailure("config vanished")
        return _data(NEW)

    lifecycle = CompletionLifecycle(acquire, registry)
    slow = asyncio.create_task(lifecycle.reload())
    await asyncio.sleep(0)

    release.set()
    await lifecycle.reload()
    state = await slow

    assert state is LifecycleState.LOADED
    assert len(registry.active) == 3
    assert _labels(registry, "tw`focus:") == {"text-blue"}
