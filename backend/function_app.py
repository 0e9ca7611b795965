import azure.functions as func

from config import settings
from routes.serverless import create_proxy_blueprint
from services.proxy_cache import ProxyCache

proxy = ProxyCache.from_settings(settings)

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)
app.register_functions(create_proxy_blueprint(proxy))
