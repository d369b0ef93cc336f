# config.py - Конфигурационный файл
import os
from dotenv import load_dotenv

# Загружаем переменные окружения
load_dotenv()

# Токен бота из переменных окружения
TOKEN = os.getenv('BOT_TOKEN', '')

# Уровень логирования (DEBUG / INFO / WARNING ...)
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Через сколько секунд бездействия форма идеи закрывается сама
IDEA_FORM_TIMEOUT_SECONDS = int(os.getenv('IDEA_FORM_TIMEOUT_SECONDS', '900'))

# Группа PTB для обработчика «клик снаружи»: раньше основных (group=0)
DISMISS_HANDLER_GROUP = int(os.getenv('DISMISS_HANDLER_GROUP', '-5'))
