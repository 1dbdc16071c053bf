import asyncio
import logging
import struct

from akafka import Broker


async def send_request(port: int, correlation_id: int) -> None:
    reader, writer = await asyncio.open_connection("127.0.0.1", port)

    # ApiVersions v4, no body
    writer.write(struct.pack(">iHHi", 8, 18, 4, correlation_id))
    await writer.drain()

    message_size, echoed = struct.unpack(">ii", await reader.readexactly(8))
    print(f"size={message_size} correlation_id={echoed}")

    writer.close()
    await writer.wait_closed()


async def main() -> None:
    async with Broker("kafka://127.0.0.1:0") as broker:
        await asyncio.gather(*(send_request(broker.port, i) for i in range(3)))


logging.basicConfig(level=logging.INFO)
asyncio.run(main())
