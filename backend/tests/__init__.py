"""
Linglong Fu Backend Test Suite

Test structure:
- unit/: Test components in isolation with a scripted gateway
- integration/: Full playthroughs through the coordinator
- e2e/: Real LLM tests (marked @pytest.mark.slow)
- mocks/: Scripted gateway for deterministic turns
"""
