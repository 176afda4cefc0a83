"""CyberCrime Hive application package"""
