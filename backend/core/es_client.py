"""Elasticsearch client wrapper with bulk operations, scans and index management."""

import logging
from typing import Any

from elasticsearch import AsyncElasticsearch, NotFoundError
from elasticsearch.helpers import async_bulk, async_scan

logger = logging.getLogger(__name__)


class ESClient:
    def __init__(self, hosts: list[str], timeout: int = 30):
        self.client = AsyncElasticsearch(hosts=hosts, request_timeout=timeout)

    async def close(self):
        await self.client.close()

    async def health(self) -> dict:
        return await self.client.cluster.health()

    async def ensure_index(self, name: str, body: dict) -> bool:
        """Create index if it doesn't exist. If it exists, update mappings with any new fields."""
        if await self.client.indices.exists(index=name):
            if "mappings" in body and "properties" in body["mappings"]:
                try:
                    await self.client.indices.put_mapping(
                        index=name, properties=body["mappings"]["properties"]
                    )
                    logger.info("Updated mappings for index: %s", name)
                except Exception as e:
                    logger.warning("Could not update mappings for %s: %s", name, e)
            return False
        await self.client.indices.create(index=name, body=body)
        logger.info("Created index: %s", name)
        return True

    async def index_doc(self, index: str, doc_id: str, body: dict) -> dict:
        return await self.client.index(index=index, id=doc_id, document=body)

    async def get(self, index: str, doc_id: str) -> dict | None:
        try:
            result = await self.client.get(index=index, id=doc_id)
            return result["_source"]
        except NotFoundError:
            return None

    async def search(
        self,
        index: str,
        query: dict | None = None,
        sort: list | None = None,
        size: int = 100,
        from_: int = 0,
    ) -> dict:
        body: dict[str, Any] = {"size": size, "from": from_}
        if query:
            body["query"] = query
        if sort:
            body["sort"] = sort
        return await self.client.search(index=index, body=body)

    async def scan(self, index: str, query: dict | None = None) -> list[dict]:
        """Return every matching document's source, unbounded by the 10k search window."""
        body = {"query": query or {"match_all": {}}}
        docs = []
        try:
            async for hit in async_scan(self.client, index=index, query=body, size=1000):
                docs.append(hit["_source"])
        except NotFoundError:
            logger.warning("Index %s not found during scan", index)
        return docs

    async def bulk_index(
        self, index: str, documents: list[dict], id_field: str | None = None
    ) -> dict:
        """Bulk index documents. If id_field is set, use that field as the ES doc _id."""
        actions = []
        for doc in documents:
            action = {"_index": index, "_source": doc}
            if id_field and id_field in doc:
                action["_id"] = doc[id_field]
            actions.append(action)

        success, errors = await async_bulk(
            self.client,
            actions,
            chunk_size=500,
            raise_on_error=False,
        )
        if errors:
            logger.warning("Bulk index had %d errors", len(errors))
        return {"success": success, "errors": len(errors) if errors else 0}

    async def bulk_upsert(
        self, index: str, documents: list[dict], id_field: str
    ) -> dict:
        """Bulk upsert: index documents using id_field as doc _id (overwrites if exists)."""
        actions = []
        for doc in documents:
            doc_id = doc.get(id_field)
            if not doc_id:
                continue
            actions.append({"_index": index, "_id": doc_id, "_source": doc})

        success, errors = await async_bulk(
            self.client,
            actions,
            chunk_size=500,
            raise_on_error=False,
        )
        if errors:
            logger.warning("Bulk upsert had %d errors", len(errors))
        return {"success": success, "errors": len(errors) if errors else 0}
