"""Agent registry backed by a JSON file of locally registered agents."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from agentmem import config
from agentmem.models import Agent

logger = logging.getLogger("agentmem.registry")


class AgentRegistry:
    """Looks up agents and their configured working directories."""

    def __init__(self, storage_path: Path):
        self.storage_path = storage_path
        self._agents: dict[str, Agent] = {}
        self._load()

    def _load(self):
        """Load agents from JSON storage."""
        if not self.storage_path.exists():
            return

        try:
            content = self.storage_path.read_text(encoding="utf-8")
            if not content.strip():
                return
            data = json.loads(content)
            for a_data in data.get("agents", []):
                try:
                    agent = Agent(**a_data)
                    self._agents[agent.id] = agent
                except Exception as e:
                    logger.error(f"Failed to load agent: {e}")
        except Exception as e:
            logger.error(f"Failed to load agent registry file: {e}")

    def _save(self):
        """Save agents to JSON storage."""
        data = {"agents": [a.model_dump() for a in self._agents.values()]}
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def reload(self):
        self._agents = {}
        self._load()

    def list_agents(self) -> list[Agent]:
        return list(self._agents.values())

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_agent_by_session(self, session_key: str) -> Optional[Agent]:
        """Find the agent owning a session, matched by session id or name."""
        if not session_key:
            return None
        for agent in self._agents.values():
            for session in agent.sessions:
                if session_key in (session.id, session.name):
                    return agent
        return None

    def add_agent(self, agent: Agent):
        self._agents[agent.id] = agent
        self._save()
        logger.info(f"Registered agent: {agent.name or agent.id}")


# Global instance initialized from AGENTMEM_AGENT_REGISTRY_PATH
agent_registry = AgentRegistry(config.AGENT_REGISTRY_PATH)
