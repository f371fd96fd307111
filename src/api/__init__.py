"""API — camada de borda HTTP.

Responsabilidades:
- Receber requests HTTP e converter em chamadas de use case
- Validar payloads (pydantic)
- Mapear falhas de domínio para respostas estruturadas

NÃO PODE conter: FSM, regras de sessão, rate limit, orquestração de envio.
"""
