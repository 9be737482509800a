# Development server using ./data as config dir, polling and debug logging
from mailserver_lib.logging_config import configure_logging
from mailserver_lib.main import create_app, Config
app = create_app(Config(config_dir='data', use_polling=True, log_level='DEBUG'))
if __name__ == "__main__":
    import uvicorn
    configure_logging('DEBUG')
    uvicorn.run(app, host="127.0.0.1", port=3000, log_config=None)
