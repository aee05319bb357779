"""Error handling — synchronous faults, deferred faults, one error reporter.

Three ways a route can fail, and why they all end up in the same place:

- ``/sync-test`` raises in a plain ``def``. The dispatcher catches it.
- ``/async-test-1`` awaits something that fails and does nothing about it.
  Left alone, that failure would only end a background task and the request
  would hang. Every ``async def`` route is wrapped by the suspension
  adapter, so it gets the same error response as the sync case.
- ``/async-test-2`` catches the failure and forwards it with
  ``cycle.fail(exc)``. This works, but it is what the adapter already does.
- ``/async-test-3`` is ``/async-test-1`` with an explicit suspension bound.

Run:
    python app.py
"""

import asyncio

from wren import App, AppConfig, DispatchCycle

app = App(AppConfig(deferred_timeout=5.0))

# How long the simulated network/database call takes before failing
DELAY = 0.05


async def async_fn() -> None:
    """Simulate a network or database call that fails after ``DELAY``."""
    await asyncio.sleep(DELAY)
    raise RuntimeError("Async Fn error!")


@app.route("/sync-test")
def sync_test():
    raise RuntimeError("Error from synchronous code!")


@app.route("/async-test-1")
async def async_test_1():
    await async_fn()
    return {"well": "We're not going to reach this line."}


@app.route("/async-test-2")
async def async_test_2(cycle: DispatchCycle):
    try:
        await async_fn()
        return {"well": "We're not going to reach this line, either."}
    except RuntimeError as exc:
        cycle.fail(exc)


@app.route("/async-test-3", timeout=2.0)
async def async_test_3():
    await async_fn()
    return {"well": "We're *still* not going to reach this line."}


@app.route("/async-ok")
async def async_ok():
    await asyncio.sleep(DELAY)
    return {"well": "This one works."}


if __name__ == "__main__":
    import logging

    logging.basicConfig(level=logging.INFO)
    app.run()
