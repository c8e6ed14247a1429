"""
Block Manager
Places block instances in page regions and renders them for the API
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from lms.config import settings
from lms.core.plugin.manager import PluginManager
from lms.core.supabase_client import first_row
from lms.utils.cache import TTLCache
from lms.utils.exceptions import NotFoundError, PluginError

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_ID = "1"
UPDATABLE_FIELDS = ("region", "weight", "config", "visible")

# Page block lists are shared between requests
block_cache = TTLCache(settings.BLOCK_CACHE_TTL)


class BlockManager:
    def __init__(self, db, plugins: PluginManager, cache: Optional[TTLCache] = None):
        self.db = db
        self.plugins = plugins
        self.cache = cache if cache is not None else block_cache

    def get_page_blocks(self, page_type: str, context: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Visible blocks for a page, ordered by weight.

        Returns a list of ``{"instance": row, "block": plugin}`` entries.
        Blocks that fail to load or decide not to show are left out.
        """
        context = context or {}
        context_id = self._context_id(context)

        instances = self.cache.remember(
            self._cache_key(page_type, context_id),
            lambda: self._fetch_instances(page_type, context_id),
        )

        blocks = []
        for instance in instances:
            try:
                block = self.plugins.get_enabled_plugin("block", instance["block_name"])
            except Exception as e:
                logger.error(f"Failed to load block {instance['block_name']}: {str(e)}")
                continue

            if block.should_show(page_type, context):
                blocks.append({"instance": instance, "block": block})

        return blocks

    def get_blocks_for_api(self, page_type: str, context: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Page blocks grouped by region, ready for the front-end"""
        context = context or {}
        locale = context.get("locale")
        regions: Dict[str, List[Dict[str, Any]]] = {}

        for entry in self.get_page_blocks(page_type, context):
            instance, block = entry["instance"], entry["block"]
            config = block.resolve_config(instance.get("config"))

            regions.setdefault(instance["region"], []).append({
                "id": instance["id"],
                "name": instance["block_name"],
                "title": block.get_title(locale),
                "content": block.get_content(config, context),
                "component": block.get_react_component(),
                "data": block.get_api_data(config, context),
                "configurable": block.has_config(),
                "weight": instance.get("weight", 0),
            })

        return [{"region": region, "blocks": blocks} for region, blocks in regions.items()]

    def create_block_instance(
        self,
        block_name: str,
        page_type: str,
        region: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        block = self.plugins.get_enabled_plugin("block", block_name)
        context_id = self._context_id(context or {})

        if not block.supports_page_type(page_type):
            raise PluginError(f"Block {block_name} cannot be added to {page_type} pages")

        region = region or block.get_default_region()
        self._check_region(block, region)
        config = block.validate_config(config)

        if not block.supports_multiple_instances():
            existing = self.db.table("block_instances").select("id").eq(
                "block_name", block_name
            ).eq("page_type", page_type).eq("context_id", context_id).limit(1).execute()

            if existing.data:
                raise PluginError(f"Block {block_name} only allows one instance per page")

        now = datetime.now(timezone.utc).isoformat()
        row = {
            "block_name": block_name,
            "page_type": page_type,
            "context_id": context_id,
            "region": region,
            "weight": self._next_weight(page_type, region, context_id),
            "config": config,
            "visible": True,
            "created_at": now,
            "updated_at": now,
        }

        result = self.db.table("block_instances").insert(row).execute()
        created = first_row(result)
        if not created:
            raise PluginError("Failed to create block instance", 500)

        self.clear_cache()
        logger.info(f"Added block {block_name} to {page_type}/{region}")
        return created

    def update_block_instance(self, instance_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        instance = self.get_block_instance(instance_id)
        update = {field: data[field] for field in UPDATABLE_FIELDS if field in data}

        if "region" in update or "config" in update:
            block = self.plugins.get_enabled_plugin("block", instance["block_name"])
            if "region" in update:
                self._check_region(block, update["region"])
            if "config" in update:
                update["config"] = block.validate_config(update["config"])

        update["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.db.table("block_instances").update(update).eq("id", instance_id).execute()

        self.clear_cache()
        return first_row(result) or {**instance, **update}

    def delete_block_instance(self, instance_id: str) -> bool:
        self.get_block_instance(instance_id)
        self.db.table("block_instances").delete().eq("id", instance_id).execute()
        self.clear_cache()
        return True

    def move_block(self, instance_id: str, region: str, weight: Optional[int] = None) -> Dict[str, Any]:
        instance = self.get_block_instance(instance_id)

        if weight is None:
            weight = self._next_weight(instance["page_type"], region, instance["context_id"])

        return self.update_block_instance(instance_id, {"region": region, "weight": weight})

    def toggle_block_visibility(self, instance_id: str) -> bool:
        instance = self.get_block_instance(instance_id)
        visible = not instance.get("visible", True)
        self.update_block_instance(instance_id, {"visible": visible})
        return visible

    def get_block_instance(self, instance_id: str) -> Dict[str, Any]:
        result = self.db.table("block_instances").select("*").eq("id", instance_id).limit(1).execute()
        instance = first_row(result)
        if not instance:
            raise NotFoundError("Block instance not found")
        return instance

    def get_available_blocks(self, page_type: Optional[str] = None, locale: Optional[str] = None) -> List[Dict[str, Any]]:
        """Enabled blocks that can be added to the given page type"""
        available = []

        for plugin in self.plugins.get_enabled_plugins("block"):
            try:
                block = self.plugins.load_plugin("block", plugin["name"])
            except Exception as e:
                logger.error(f"Failed to load block {plugin['name']}: {str(e)}")
                continue

            if page_type and not block.supports_page_type(page_type):
                continue

            available.append({
                "name": block.get_name(),
                "title": block.get_title(locale),
                "description": block.get_description(),
                "regions": block.get_supported_regions(),
                "default_region": block.get_default_region(),
                "multiple": block.supports_multiple_instances(),
                "configurable": block.has_config(),
            })

        return sorted(available, key=lambda item: item["title"].lower())

    def clear_cache(self) -> None:
        self.cache.forget_prefix("blocks.")

    def _fetch_instances(self, page_type: str, context_id: str) -> List[Dict[str, Any]]:
        result = self.db.table("block_instances").select("*").eq(
            "page_type", page_type
        ).eq("context_id", context_id).eq("visible", True).order("weight").execute()
        return sorted(result.data or [], key=lambda row: row.get("weight", 0))

    def _next_weight(self, page_type: str, region: str, context_id: str) -> int:
        result = self.db.table("block_instances").select("weight").eq(
            "page_type", page_type
        ).eq("region", region).eq("context_id", context_id).order("weight", desc=True).limit(1).execute()

        last = first_row(result)
        return (last["weight"] if last else 0) + 1

    @staticmethod
    def _check_region(block, region: str) -> None:
        if region not in block.get_supported_regions():
            raise PluginError(f"Block {block.get_name()} does not support region {region}")

    @staticmethod
    def _context_id(context: Dict[str, Any]) -> str:
        return str(context.get("context_id") or DEFAULT_CONTEXT_ID)

    @staticmethod
    def _cache_key(page_type: str, context_id: str) -> str:
        return f"blocks.{page_type}.{context_id}"
