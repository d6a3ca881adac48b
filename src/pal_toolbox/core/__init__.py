"""Framework pieces shared by every tool: base class, config, events, errors."""
