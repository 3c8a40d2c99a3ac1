# tokengate Services
