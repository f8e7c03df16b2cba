"""
qbit-client - Basic Usage Example

This example demonstrates the basic usage of the qbit-client package
against a local qBittorrent WebUI.
"""

import asyncio
import logging

from qbit_client import (
    QbitClient,
    QbitConfig,
    Credentials,
    CredentialError,
    RateLimitError,
    NotFoundError,
    create_async_qbit_client,
)


def sync_example():
    """Synchronous client example."""
    print("=== Sync Client Example ===\n")

    # Initialize client (no request is sent yet)
    client = QbitClient(QbitConfig(
        credentials=Credentials("admin", "adminadmin"),
        base_url="http://localhost:8080",
        debug=True,
    ))

    try:
        client.login()
        print(f"qBittorrent {client.app.version()} (API {client.app.web_api_version()})")
        print(f"Download limit: {client.transfer.download_limit()} B/s")

        try:
            client.torrents.properties("0000000000000000000000000000000000000000")
        except NotFoundError as e:
            print(f"Lookup failed as expected: {e.message}")

        client.logout()
    except CredentialError as e:
        print(f"Login rejected: {e.message}")
    except RateLimitError as e:
        print(f"Banned: {e.message}")
    except Exception as e:
        print(f"Error (expected without a running WebUI): {type(e).__name__}")
    finally:
        client.close()


async def async_example():
    """Asynchronous client example."""
    print("\n=== Async Client Example ===\n")

    try:
        client = await create_async_qbit_client("http://localhost:8080", "admin", "adminadmin")
    except Exception as e:
        print(f"Error (expected without a running WebUI): {type(e).__name__}")
        return

    async with client:
        # Concurrent calls share a single login
        version, info = await asyncio.gather(
            client.app.version(),
            client.transfer.info(),
        )
        print(f"qBittorrent {version}, status: {info.get('connection_status')}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    sync_example()
    asyncio.run(async_example())
