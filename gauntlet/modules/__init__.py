"""Domain modules: combat engine, dungeon orchestrator, arena ladder."""
