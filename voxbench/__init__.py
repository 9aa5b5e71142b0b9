"""
voxbench: record speech, route it to one of several speech models,
keep the conversation, compare the models.
"""
