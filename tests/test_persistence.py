import asyncio

from callrelay import DurableWriter


def test_jobs_run_in_submission_order() -> None:
    async def scenario():
        writer = DurableWriter(timeout=1.0, retries=0, backoff=0)
        order = []

        def job(n):
            async def run():
                await asyncio.sleep(0.01 * (3 - n))
                order.append(n)
            return run

        for n in range(3):
            writer.submit(f"job {n}", job(n))
        await writer.drain()
        assert order == [0, 1, 2]
        assert writer.get_stats()["completed"] == 3
        await writer.stop()

    asyncio.run(scenario())


def test_failed_job_is_retried_then_succeeds() -> None:
    async def scenario():
        writer = DurableWriter(timeout=1.0, retries=2, backoff=0)
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 2:
                raise ConnectionError("transient")

        writer.submit("flaky", flaky)
        await writer.drain()
        assert len(attempts) == 2
        stats = writer.get_stats()
        assert stats["completed"] == 1
        assert stats["retried"] == 1
        assert stats["failed"] == 0
        await writer.stop()

    asyncio.run(scenario())


def test_slow_job_times_out_and_later_jobs_still_run() -> None:
    async def scenario():
        writer = DurableWriter(timeout=0.05, retries=0, backoff=0)
        done = []

        async def slow():
            await asyncio.sleep(5)

        async def fast():
            done.append("fast")

        writer.submit("slow", slow)
        writer.submit("fast", fast)
        await writer.drain()
        assert done == ["fast"]
        assert writer.get_stats()["failed"] == 1
        await writer.stop()

    asyncio.run(scenario())


def test_stop_without_start_is_a_noop() -> None:
    asyncio.run(DurableWriter().stop())


def test_full_queue_drops_new_jobs_while_a_job_is_stalled() -> None:
    async def scenario():
        writer = DurableWriter(timeout=5.0, retries=0, backoff=0, max_pending=1)
        release = asyncio.Event()
        done = []

        async def stalled():
            await release.wait()
            done.append("stalled")

        def job(name):
            async def run():
                done.append(name)
            return run

        assert writer.submit("stalled", stalled) is True
        # Let the worker pick up the stalled job so the queue is empty again
        for _ in range(3):
            await asyncio.sleep(0)

        assert writer.submit("queued", job("queued")) is True
        assert writer.submit("overflow", job("overflow")) is False
        stats = writer.get_stats()
        assert stats["dropped"] == 1
        assert stats["pending"] == 1

        release.set()
        await writer.drain()
        assert done == ["stalled", "queued"]
        assert writer.get_stats()["completed"] == 2
        await writer.stop()

    asyncio.run(scenario())
