"""Basic Chromy session: navigate, wait, evaluate and receive page messages."""

import asyncio

from chromy import Chromy, ChromyOptions, JSFunction, WaitTimeoutError


async def main():
    """Drive example.com with options read from the environment (.env supported)."""
    options = ChromyOptions.from_env(launch_browser=True, verbose=2, wait_timeout=2000)

    async with Chromy(options) as chromy:
        print(f"✓ Chromy started with session ID: {chromy.session_id}")

        await chromy.goto("https://example.com/")
        print("✓ Page loaded")

        await chromy.wait("h1")
        title = await chromy.evaluate("document.title")
        print(f"✓ Page title: {title}")

        messages = asyncio.Queue()
        await chromy.receive_message(messages.put_nowait)
        await chromy.console(lambda line, payload: print(f"  console: {line}"))

        await chromy.evaluate("console.log('plain log line')")
        await chromy.evaluate("sendToChromy({links: document.links.length})")
        print(f"✓ Message from page: {await asyncio.wait_for(messages.get(), 5)}")

        await chromy.define_function({
            "heading": JSFunction.returning("document.querySelector('h1').textContent"),
        })
        print(f"✓ Heading via injected function: {await chromy.evaluate('heading()')}")

        try:
            await chromy.wait(JSFunction.returning("window.neverSet === true"))
        except WaitTimeoutError as e:
            print(f"✗ Wait gave up as expected: {e.details}")

        png = await chromy.screenshot()
        print(f"✓ Screenshot: {len(png)} bytes")


if __name__ == "__main__":
    asyncio.run(main())
