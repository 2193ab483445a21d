"""
Services for investor research: external integrations, the research
workflow and collaborator diagnostics.
"""
