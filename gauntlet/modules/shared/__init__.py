"""
Shared building blocks for the encounter modules: base service, domain
exceptions, the progression contract and player stat derivation.
"""
