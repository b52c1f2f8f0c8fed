"""Factory defaults and the shipped config.yaml (package data)"""
