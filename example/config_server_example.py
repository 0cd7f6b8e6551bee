from tap_coordinator.servers import ConfigServer

# Serves GET /api/config with PAYMASTER_SERVICE_URL from the environment
app = ConfigServer(title="Tap config")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
