"""
Synapse MCP Server

Exposes the Synapse task engine (tasks, statistics, views, suggestions) as
MCP tools.
"""

import logging
from typing import Optional, List

from mcp.server.fastmcp import FastMCP

from synapse.config import SynapseConfig, load_config
from synapse.db import create_adapter
from synapse.services.tasks import TaskStore
from synapse_mcp.tools import SynapseTools

logger = logging.getLogger(__name__)


def build_store(config: SynapseConfig) -> TaskStore:
    """Create a TaskStore over the configured storage backend."""
    adapter = create_adapter(config)
    return TaskStore(adapter, strict_persistence=config.storage.strict)


def create_server(
    store: Optional[TaskStore] = None,
    config: Optional[SynapseConfig] = None,
) -> FastMCP:
    """
    Build the MCP server.

    Args:
        store: TaskStore to serve. Built from configuration if not provided.
        config: Optional SynapseConfig. Loaded from the default location if not provided.

    Returns:
        FastMCP instance with all Synapse tools registered
    """
    config = config or load_config()
    store = store or build_store(config)
    tools = SynapseTools(store, defaults=config.views)

    mcp = FastMCP("synapse")

    # =========================================================================
    # TASK TOOLS
    # =========================================================================

    @mcp.tool()
    async def task_create(
        title: str,
        description: str = "",
        priority: str = "medium",
        due_at: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> dict:
        """
        Create a new task.

        Args:
            title: Task title
            description: Task description
            priority: Priority (low, medium, high, urgent)
            due_at: Optional due date (ISO 8601)
            tags: List of tags

        Returns:
            Created task details
        """
        return await tools.task_create(title, description, priority, due_at, tags)

    @mcp.tool()
    async def task_show(task_id: str) -> dict:
        """
        Get detailed information about a task.

        Args:
            task_id: Task UUID
        """
        return await tools.task_show(task_id)

    @mcp.tool()
    async def task_update(
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        status: Optional[str] = None,
        due_at: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> dict:
        """
        Update an existing task.

        Args:
            task_id: Task UUID
            title: New title
            description: New description
            priority: New priority
            status: New status (pending, in_progress, completed, cancelled)
            due_at: New due date (ISO 8601)
            tags: New tags

        Returns:
            Updated task details
        """
        return await tools.task_update(task_id, title, description, priority, status, due_at, tags)

    @mcp.tool()
    async def task_complete(task_id: str) -> dict:
        """Mark a task as completed."""
        return await tools.task_complete(task_id)

    @mcp.tool()
    async def task_toggle(task_id: str) -> dict:
        """Toggle a task between completed and pending."""
        return await tools.task_toggle(task_id)

    @mcp.tool()
    async def task_delete(task_id: str) -> dict:
        """Permanently delete a task. Statistics are not changed."""
        return await tools.task_delete(task_id)

    @mcp.tool()
    async def task_list(
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        search: str = "",
        show_completed: Optional[bool] = None,
    ) -> dict:
        """
        List tasks through the view filters.

        Args:
            filter: all, pending, in_progress, completed, today, upcoming, overdue, high_priority
            sort: due_date, priority, created_date, title
            search: Case-insensitive text matched against title, description and tags
            show_completed: Include completed tasks in the "all" filter

        Returns:
            Matching tasks in display order
        """
        return await tools.task_list(filter, sort, search, show_completed)

    @mcp.tool()
    async def task_search(query: str) -> dict:
        """Search tasks by title, description and tags."""
        return await tools.task_search(query)

    # =========================================================================
    # STATS TOOLS
    # =========================================================================

    @mcp.tool()
    async def stats_get() -> dict:
        """
        Get productivity statistics.

        Returns:
            Counters, streaks, productivity score, tag usage and dashboard summary
        """
        return await tools.stats_get()

    @mcp.tool()
    async def suggestions_get(limit: Optional[int] = None) -> dict:
        """
        Get smart suggestions for new tasks.

        Args:
            limit: Maximum number of suggestions to return
        """
        return await tools.suggestions_get(limit)

    # =========================================================================
    # UTILITY TOOLS
    # =========================================================================

    @mcp.tool()
    async def data_reset(confirm: bool = False) -> dict:
        """
        Delete all tasks and statistics.

        Args:
            confirm: Must be true to perform the reset
        """
        return await tools.data_reset(confirm)

    @mcp.tool()
    async def synapse_health() -> dict:
        """Check storage connectivity."""
        return await tools.health()

    return mcp


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """Main entry point for synapse-mcp command."""
    import argparse

    from synapse.logging_setup import setup_logging

    parser = argparse.ArgumentParser(description="Synapse MCP Server")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args()

    from pathlib import Path
    config = load_config(Path(args.config) if args.config else None)

    setup_logging(config.logging.level, config.logging.log_dir)
    logger.info(f"Starting Synapse MCP server (storage={config.storage.type})")

    mcp = create_server(config=config)
    mcp.run()


if __name__ == "__main__":
    main()
