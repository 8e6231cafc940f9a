"""
Conversation core: orchestrator, capability registry and provider contract.
"""
