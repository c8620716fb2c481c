"""
Constantes do engine.

Valores padrão e templates de mensagens de erro usados pela configuração
e pelos componentes de cache.
"""

# Políticas de revalidação (segundos)
DEFAULT_REFRESH_INTERVAL = 0.0  # 0 = sem polling
DEFAULT_TTL = 0.0  # 0 = cache para sempre
DEFAULT_DEDUPE_INTERVAL = 2.0
DEFAULT_REVALIDATE_DEBOUNCE = 0.0
DEFAULT_ERROR_RETRY_INTERVAL = 5.0
DEFAULT_ERROR_RETRY_COUNT = 5

# Tempo extra de vida do registro de assinantes além do TTL dos dados
SUBSCRIBER_GRACE_PERIOD = 5.0

# Intervalo do sweeper de expiração
DEFAULT_SWEEP_INTERVAL = 1.0

# Prefixo das chaves geradas a partir de listas de argumentos
ARGS_KEY_PREFIX = "args"

# Variáveis de ambiente
ENV_TTL = "SWR_TTL"
ENV_DEDUPE_INTERVAL = "SWR_DEDUPE_INTERVAL"
ENV_ERROR_RETRY_INTERVAL = "SWR_ERROR_RETRY_INTERVAL"
ENV_ERROR_RETRY_COUNT = "SWR_ERROR_RETRY_COUNT"

# Templates de mensagens de erro
ERROR_DURATION_TYPE_INVALID = "{name} must be int or float, got {type_name}"
ERROR_DURATION_NEGATIVE = "{name} must be >= 0, got {value}"
ERROR_COUNT_TYPE_INVALID = "{name} must be int, got {type_name}"
ERROR_COUNT_NEGATIVE = "{name} must be >= 0, got {value}"
ERROR_CALLABLE_INVALID = "{name} must be callable, got {type_name}"
ERROR_UNKNOWN_OPTION = "Unknown configuration option: {name}"
ERROR_ENV_INVALID = "Invalid value for environment variable {name}: {value!r}"
