"""AgentWatch - host availability checks through remote check agents."""
