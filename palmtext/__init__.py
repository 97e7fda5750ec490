"""
palmtext: client for the PaLM 2 text model (text-bison-001).

Example:
    import asyncio
    from palmtext import PalmTextClient, build_connection

    async def main():
        connection = build_connection("API_KEY", "v1beta3")
        async with PalmTextClient(connection) as client:
            outcome = await client.explain_code("x <- 1", language="R")
            if outcome.ok:
                print(outcome.text)

    asyncio.run(main())
"""

from palmtext.llm import *  # noqa: F401,F403
from palmtext.llm import __all__ as _llm_all

__version__ = "0.1.0"

__all__ = list(_llm_all) + ["__version__"]
