"""
Converge Migrator - detecção de uso do gateway de pagamento Converge e
migração campo a campo para Elavon
"""

__version__ = "0.3.0"
