"""App — coração do sistema: sessões, envio e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- sessions/: Lifecycle Manager, Pairing Provider e locks por sessão
- use_cases/: envio único e em massa (dispatch)
- services/: serviços de aplicação (rate limiter)
- infra/: implementações concretas de IO (stores, QR, mídia, protocolo)
- protocols/: contratos/interfaces
- observability/: contexto de logs e métricas

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
