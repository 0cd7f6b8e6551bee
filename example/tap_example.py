from tap_coordinator import CoordinatorSettings, InMemoryRewardStore, TapCoordinator
from tap_coordinator.clients import load_runtime_config
from tap_coordinator.engine.events import ActionConfirmedEvent, ActionFailedEvent, QueueStatusEvent
from tap_coordinator.logs import configure_logging

settings = CoordinatorSettings.from_env()  # WALLET_RPC_URL must point at a wallet endpoint
store = InMemoryRewardStore()


async def main():
    configure_logging(settings.log_level)

    runtime = await load_runtime_config("http://localhost:8000", override=settings.paymaster_service_url)
    coordinator = TapCoordinator(
        settings.model_copy(update={"paymaster_service_url": runtime.paymaster_service_url}),
        store,
    )

    @coordinator.hook(QueueStatusEvent)
    async def show_hint(event, deps):
        print("Hint:", event.hint)

    @coordinator.hook(ActionConfirmedEvent)
    async def on_confirmed(event, deps):
        print(f"Tap #{event.counter} confirmed, balance {deps.reward_sink.balance}")

    @coordinator.hook(ActionFailedEvent)
    async def on_failed(event, deps):
        print("Toast:", event.message)

    await coordinator.start()
    for _ in range(3):
        await coordinator.tap()
    await coordinator.wait_idle()


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
