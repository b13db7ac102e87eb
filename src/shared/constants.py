# Базовый размер тайла Web Mercator (пикселей)
TILE_SIZE = 256

# Половина тайла в долях от ширины/высоты вьюпорта: width / (2 * TILE_SIZE)
HALF_VIEWPORT_DIVISOR = 2 * TILE_SIZE

# Предел широты проекции Web Mercator (градусы)
MERCATOR_MAX_LAT_DEG = 85.05112878

# Диапазоны географических координат
WORLD_LNG_HALF_SPAN_DEG = 180.0
WORLD_LNG_SPAN_DEG = 360.0
WORLD_LAT_HALF_SPAN_DEG = 90.0

# Поставщик тайлов (OpenStreetMap standard layer)
TILE_URL_TEMPLATE = 'https://tile.openstreetmap.org/{z}/{x}/{y}.png'
TILE_EXT = 'png'

# OSM tile usage policy rejects requests without an identifying User-Agent (HTTP 403)
USER_AGENT = 'MapRender/1.0 (+https://github.com/maprender/maprender)'

# Диапазон зумов, поддерживаемых поставщиком
MIN_ZOOM = 0
MAX_ZOOM = 19

# Максимальное число параллельных HTTP-запросов
DOWNLOAD_CONCURRENCY = 8

# Таймаут одного HTTP-запроса (секунды)
HTTP_TIMEOUT_DEFAULT = 20.0

HTTP_OK = 200
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404

# Кэш тайлов на диске (относительно рабочего каталога)
TILE_CACHE_DIR = 'Cache'
TILE_CACHE_TMP_SUFFIX = '.tmp'

# Итоговый файл по умолчанию
DEFAULT_OUTPUT_PATH = 'map.png'

# Фон холста для областей без тайлов (RGB)
CANVAS_BACKGROUND = (255, 255, 255)
CANVAS_MODE = 'RGB'

# Префикс переменных окружения для переопределения настроек
ENV_PREFIX = 'MAPRENDER_'

# Формат логов
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Сценарий по умолчанию: центр Москвы, 900x100, zoom 17
DEFAULT_CENTER_LON = 37.617635
DEFAULT_CENTER_LAT = 55.755821
DEFAULT_WIDTH_PX = 900
DEFAULT_HEIGHT_PX = 100
DEFAULT_ZOOM = 17
