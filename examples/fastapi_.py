# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "warp[fastapi]",
#     "httpx",
# ]
#
# [tool.uv.sources]
# warp = { path = "../", editable = true }
# ///


import asyncio
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI

from warp import LastModified, Request, ValidationContext, ValidationOptions, ValidatorRegistry
from warp.fastapi import FastAPIValidation

app = FastAPI()
registry = ValidatorRegistry()

updated_at = datetime.now(timezone.utc)
processed_requests = 0


@registry.register("items.last_modified")
async def items_last_modified(request: Request) -> datetime:
    return updated_at


validation = FastAPIValidation(ValidationOptions(enabled=True), registry)


@app.get("/items/")
async def read_items(context: ValidationContext = validation.depends(LastModified("items.last_modified"))):
    global processed_requests
    processed_requests += 1
    return {"updated_at": context.last_modified, "processed_requests": processed_requests}


@app.post("/items/")
async def touch_items():
    global updated_at
    updated_at = datetime.now(timezone.utc)
    return {"updated_at": updated_at}


async def main():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/items/")
        print(f"First request: status={response.status_code} body={response.json()}")

        last_modified = response.headers["last-modified"]
        response = await client.get("/items/", headers={"If-Modified-Since": last_modified})
        print(f"Revalidation: status={response.status_code}")

        await asyncio.sleep(1)
        await client.post("/items/")
        response = await client.get("/items/", headers={"If-Modified-Since": last_modified})
        print(f"After update: status={response.status_code} body={response.json()}")


if __name__ == "__main__":
    asyncio.run(main())
