"""ChatBridge Proxy: relays front-end chat requests to DeepSeek or Gemini."""
